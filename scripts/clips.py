#!/usr/bin/env python3
"""
Manage captured clips.

Usage:
    python scripts/clips.py list
    python scripts/clips.py save exported_clips/
    python scripts/clips.py clear --yes
"""
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))
import config_loader
from core import ClipStore, download_name


def list_clips(store: ClipStore) -> None:
    clips = store.list()
    if not clips:
        print("No clips recorded")
        return
    for clip in clips:
        print(f"#{clip.id:<5} {clip.time}  {len(clip.audio):>9} bytes  {clip.encoding:<26} {clip.path.name}")
    print(f"\n{len(clips)} clip(s)")


def save_clips(store: ClipStore, output_dir: Path) -> int:
    """Write every clip under its download name; returns the count."""
    output_dir.mkdir(parents=True, exist_ok=True)
    saved = 0
    for clip in store.list():
        name = download_name(clip)
        target = output_dir / name
        if target.exists():
            target = output_dir / f"{target.stem}_{clip.id}{target.suffix}"
        target.write_bytes(clip.audio)
        print(f"Saved {target}")
        saved += 1
    return saved


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="List, export or delete captured clips")
    parser.add_argument("--config", type=Path, default=None, help="Path to config.json")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("list", help="List clips, newest first")
    save_parser = sub.add_parser("save", help="Copy clips to a directory with download names")
    save_parser.add_argument("output_dir", type=Path)
    clear_parser = sub.add_parser("clear", help="Delete all clips")
    clear_parser.add_argument("--yes", action="store_true", help="Do not ask for confirmation")
    args = parser.parse_args()

    config = config_loader.load_config(args.config)
    with ClipStore(config) as store:
        if args.command == "list":
            list_clips(store)
        elif args.command == "save":
            count = save_clips(store, args.output_dir)
            print(f"Saved {count} clip(s) to {args.output_dir}")
        elif args.command == "clear":
            if not args.yes and input("Delete all clips? [y/N] ").strip().lower() != "y":
                print("Aborted")
                sys.exit(1)
            store.clear()
            print("All clips deleted")
