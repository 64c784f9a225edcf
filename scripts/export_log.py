#!/usr/bin/env python3
"""
Export the full event log as chronological text.

The output is UTF-8 with a byte-order mark so spreadsheet tools detect the
encoding.
"""
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))
import config_loader
from core import EventLog, write_export


def export_log(config: dict, output_path: Path) -> int:
    """
    Write every persisted entry to output_path.

    Returns:
        Number of entries written
    """
    with EventLog(config) as event_log:
        entries = event_log.export_all()
    write_export(entries, output_path)
    return len(entries)


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Export the event log as text")
    parser.add_argument("--config", type=Path, default=None, help="Path to config.json")
    parser.add_argument("--output", type=Path, default=Path("noise_log.txt"),
                        help="Output file (default: noise_log.txt)")
    args = parser.parse_args()

    config = config_loader.load_config(args.config)
    count = export_log(config, args.output)
    print(f"Exported {count} entries to {args.output}")
