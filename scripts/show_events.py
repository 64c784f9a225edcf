#!/usr/bin/env python3
"""
Show entries from the event log.

Prints the most recent entries, or a per-day detection summary.
"""
import sys
from pathlib import Path
from typing import Optional

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))
from core.reporting import load_events, summarize_detections
import pandas as pd


def show_events(
    events_file: Path = Path("data/events.csv"),
    limit: Optional[int] = 20,
    summary: bool = False
):
    """
    Show events from the event log.

    Args:
        events_file: Path to events.csv
        limit: Maximum number of entries to show (None = all)
        summary: If True, print per-day detection statistics instead
    """
    df = load_events(events_file)

    if df.empty:
        print(f"No entries found in {events_file}")
        return

    print("=" * 60)
    if summary:
        print("DETECTIONS PER DAY")
        print("=" * 60)
        daily = summarize_detections(df)
        if daily.empty:
            print("No detections recorded")
        else:
            print(daily.to_string())
        print("=" * 60)
        return

    print("EVENT LOG")
    print("=" * 60)

    # Most recent first
    df = df.sort_values(["timestamp", "id"], ascending=False)
    if limit:
        df = df.head(limit)
        print(f"Showing most recent {limit} entries")
    else:
        print("Showing all entries")
    print()

    for _, row in df.iterrows():
        if row["kind"] == "DETECTION":
            print(f"{row['time']}  {row['display_value']} dB detected (threshold {row['threshold']})")
        else:
            print(f"{row['time']}  {row['display_value']}")

    print("=" * 60)


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Show entries from the event log")
    parser.add_argument("--events", type=Path, default=Path("data/events.csv"),
                        help="Path to events.csv (default: data/events.csv)")
    parser.add_argument("--limit", type=int, default=20, metavar="N",
                        help="Show only the most recent N entries (0 = all)")
    parser.add_argument("--summary", action="store_true",
                        help="Show per-day detection statistics")

    args = parser.parse_args()

    pd.set_option('display.width', None)
    show_events(
        events_file=args.events,
        limit=args.limit or None,
        summary=args.summary
    )
