"""
Event log export and summaries.

This module renders the chronological text export and loads the event log
into pandas for operator scripts.

Single Responsibility: Event data export and reporting.
"""
from pathlib import Path
from typing import Iterable

import pandas as pd

from .repository import LogEntry, KIND_EVENT

EXPORT_ENCODING = "utf-8-sig"  # leading BOM for spreadsheet tools


def format_log_line(entry: LogEntry) -> str:
    """
    Render one entry as ``[time] message (threshold: N)``.

    EVENT entries show their display value verbatim; detections show the
    measured loudness.
    """
    if entry.kind == KIND_EVENT:
        message = entry.display_value
    else:
        message = f"Detected: {entry.display_value}dB"
    return f"[{entry.time}] {message} (threshold: {entry.threshold})"


def render_export(entries: Iterable[LogEntry]) -> str:
    """Join entries, oldest first, one line each."""
    ordered = sorted(entries, key=lambda e: (e.at_time, e.id))
    return "\n".join(format_log_line(e) for e in ordered)


def write_export(entries: Iterable[LogEntry], output_path: Path) -> Path:
    """
    Write the full export as UTF-8 text with a byte-order mark.

    Returns:
        Path written
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(render_export(entries), encoding=EXPORT_ENCODING)
    return output_path


def load_events(events_file: Path) -> pd.DataFrame:
    """
    Load the event log CSV.

    Args:
        events_file: Path to events.csv file

    Returns:
        DataFrame with a parsed ``datetime`` column, or empty DataFrame if
        the file doesn't exist
    """
    if not events_file.exists():
        return pd.DataFrame()

    df = pd.read_csv(events_file, dtype={"display_value": str})
    df.columns = [c.strip() for c in df.columns]
    if not df.empty and "timestamp" in df.columns:
        df["datetime"] = pd.to_datetime(df["timestamp"], unit="s")
    return df


def summarize_detections(df: pd.DataFrame) -> pd.DataFrame:
    """
    Per-day detection counts and loudness statistics.

    Returns:
        DataFrame indexed by date with count, max_db and mean_db columns
    """
    columns = ["count", "max_db", "mean_db"]
    if df.empty or "kind" not in df.columns:
        return pd.DataFrame(columns=columns)

    detections = df[df["kind"] == "DETECTION"].copy()
    if detections.empty:
        return pd.DataFrame(columns=columns)

    detections["level"] = pd.to_numeric(detections["display_value"], errors="coerce")
    detections["date"] = detections["datetime"].dt.date
    summary = detections.groupby("date")["level"].agg(["count", "max", "mean"])
    summary.columns = columns
    summary["mean_db"] = summary["mean_db"].round(1)
    return summary
