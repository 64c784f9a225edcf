"""
Repository pattern for data persistence.

Single Responsibility: Handle file I/O for the event log and clip store.

Both stores assign their own strictly increasing ids and are independent of
each other: a clip is only loosely related to detections by timestamp.
"""
import csv
import datetime
import threading
from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from logger import get_logger
from .errors import PersistenceUnavailable
from .encoding import extension_for

log = get_logger(__name__)

KIND_EVENT = "EVENT"
KIND_DETECTION = "DETECTION"

EVENT_COLUMNS = ["id", "kind", "display_value", "threshold", "time", "timestamp"]
CLIP_COLUMNS = ["id", "file", "encoding", "timestamp", "time"]


def format_clock_time(timestamp: float) -> str:
    """Local wall-clock HH:MM:SS for a Unix timestamp."""
    return datetime.datetime.fromtimestamp(timestamp).strftime("%H:%M:%S")


@dataclass(frozen=True)
class LogEntry:
    """One persisted event log record."""
    id: int
    kind: str  # EVENT or DETECTION
    display_value: str
    threshold: int
    time: str
    at_time: float

    def to_row(self) -> list:
        return [self.id, self.kind, self.display_value, self.threshold, self.time, repr(self.at_time)]

    @classmethod
    def from_row(cls, row: dict) -> "LogEntry":
        return cls(
            id=int(row["id"]),
            kind=row["kind"],
            display_value=row["display_value"],
            threshold=int(row["threshold"]),
            time=row["time"],
            at_time=float(row["timestamp"]),
        )


@dataclass(frozen=True)
class ClipSegment:
    """One persisted audio clip with its metadata."""
    id: int
    audio: bytes
    encoding: str
    at_time: float
    time: str
    path: Path

    @property
    def extension(self) -> str:
        return extension_for(self.encoding)


class EventLog:
    """
    Append-only event log backed by a CSV file.

    The recent view is an in-memory window over entries that were persisted;
    it never holds anything the file does not. Appends usually run on the
    StoreWriter thread while hosts read recent() from their own; the id
    sequence and the view are guarded by one lock.
    """

    def __init__(self, config: dict):
        """
        Initialize event log.

        Args:
            config: Configuration dictionary
        """
        storage = config["storage"]
        self.events_file = Path(storage["events_file"])
        self.recent_limit = storage["recent_limit"]

        self._recent = deque(maxlen=self.recent_limit)
        self._next_id = 1
        self._open = False
        self._lock = threading.Lock()

    def open(self) -> None:
        """Create the file if needed and resume the id sequence."""
        with self._lock:
            if not self.events_file.exists():
                self.events_file.parent.mkdir(parents=True, exist_ok=True)
                with self.events_file.open("w", newline="", encoding="utf-8") as f:
                    csv.writer(f).writerow(EVENT_COLUMNS)

            entries = self._read_all()
            self._recent.clear()
            self._recent.extend(entries[-self.recent_limit:])
            self._next_id = max((e.id for e in entries), default=0) + 1
            self._open = True
        log.info(f"Event log open: {self.events_file} ({len(entries)} entries)")

    def close(self) -> None:
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def append(self, kind: str, display_value, threshold: int, now: float) -> LogEntry:
        """
        Persist one entry.

        Raises:
            PersistenceUnavailable: If the log is not open or the write fails
        """
        with self._lock:
            if not self._open:
                raise PersistenceUnavailable(f"Event log {self.events_file} is not open")

            entry = LogEntry(
                id=self._next_id,
                kind=kind,
                display_value=str(display_value),
                threshold=int(threshold),
                time=format_clock_time(now),
                at_time=now,
            )

            try:
                with self.events_file.open("a", newline="", encoding="utf-8") as f:
                    csv.writer(f).writerow(entry.to_row())
            except OSError as e:
                raise PersistenceUnavailable(f"Failed to write events file {self.events_file}: {e}")

            self._next_id += 1
            self._recent.append(entry)
        return entry

    def recent(self, limit: Optional[int] = None) -> List[LogEntry]:
        """Newest-first view, capped at limit (default: recent_limit)."""
        if limit is None:
            limit = self.recent_limit
        with self._lock:
            entries = list(self._recent)
        entries.reverse()
        return entries[:limit]

    def export_all(self) -> List[LogEntry]:
        """Every persisted entry, oldest first."""
        if not self._open:
            raise PersistenceUnavailable(f"Event log {self.events_file} is not open")
        with self._lock:
            return self._read_all()

    def clear(self) -> None:
        """Truncate the log to its header row. The id sequence continues."""
        if not self._open:
            raise PersistenceUnavailable(f"Event log {self.events_file} is not open")
        with self._lock:
            with self.events_file.open("w", newline="", encoding="utf-8") as f:
                csv.writer(f).writerow(EVENT_COLUMNS)
            self._recent.clear()
        log.info(f"Event log cleared: {self.events_file}")

    def _read_all(self) -> List[LogEntry]:
        with self.events_file.open(newline="", encoding="utf-8") as f:
            entries = [LogEntry.from_row(row) for row in csv.DictReader(f)]
        # Stable: equal timestamps keep id order
        entries.sort(key=lambda e: (e.at_time, e.id))
        return entries

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class ClipStore:
    """
    Clip store: one file per clip plus a CSV index.

    Clips are never evicted automatically; only clear() removes them.
    """

    def __init__(self, config: dict):
        """
        Initialize clip store.

        Args:
            config: Configuration dictionary
        """
        storage = config["storage"]
        self.clips_dir = Path(storage["clips_dir"])
        self.index_file = Path(storage["clips_index"])

        self._next_id = 1
        self._open = False

    def open(self) -> None:
        self.clips_dir.mkdir(parents=True, exist_ok=True)
        if not self.index_file.exists():
            self._write_header()
        rows = self._read_index()
        self._next_id = max((int(r["id"]) for r in rows), default=0) + 1
        self._open = True
        log.info(f"Clip store open: {self.clips_dir} ({len(rows)} clips)")

    def close(self) -> None:
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def append(self, blob: bytes, encoding: str, now: float) -> ClipSegment:
        """
        Persist one finalized clip.

        Raises:
            PersistenceUnavailable: If the store is not open or the write fails
        """
        if not self._open:
            raise PersistenceUnavailable(f"Clip store {self.clips_dir} is not open")

        clip_id = self._next_id
        stamp = datetime.datetime.fromtimestamp(now).strftime("%Y%m%d_%H%M%S")
        fpath = self.clips_dir / f"clip_{clip_id:05d}_{stamp}.{extension_for(encoding)}"
        time_str = format_clock_time(now)

        try:
            fpath.write_bytes(blob)
            with self.index_file.open("a", newline="", encoding="utf-8") as f:
                csv.writer(f).writerow([clip_id, fpath.name, encoding, repr(now), time_str])
        except OSError as e:
            raise PersistenceUnavailable(f"Failed to save clip {fpath}: {e}")

        self._next_id += 1
        log.info(f"Saved clip {fpath} ({len(blob)} bytes, {encoding})")
        return ClipSegment(
            id=clip_id,
            audio=blob,
            encoding=encoding,
            at_time=now,
            time=time_str,
            path=fpath,
        )

    def list(self) -> List[ClipSegment]:
        """All clips, newest first, with audio loaded."""
        if not self._open:
            raise PersistenceUnavailable(f"Clip store {self.clips_dir} is not open")

        clips = []
        for row in self._read_index():
            fpath = self.clips_dir / row["file"]
            if not fpath.exists():
                log.warning(f"Clip file missing, skipping: {fpath}")
                continue
            clips.append(ClipSegment(
                id=int(row["id"]),
                audio=fpath.read_bytes(),
                encoding=row["encoding"],
                at_time=float(row["timestamp"]),
                time=row["time"],
                path=fpath,
            ))
        clips.sort(key=lambda c: (c.at_time, c.id), reverse=True)
        return clips

    def clear(self) -> None:
        """Delete every clip and index row. Safe to call repeatedly."""
        if not self._open:
            raise PersistenceUnavailable(f"Clip store {self.clips_dir} is not open")

        removed = 0
        for row in self._read_index():
            fpath = self.clips_dir / row["file"]
            if fpath.exists():
                fpath.unlink()
                removed += 1
        self._write_header()
        log.info(f"Cleared clip store ({removed} files removed)")

    def _write_header(self) -> None:
        self.index_file.parent.mkdir(parents=True, exist_ok=True)
        with self.index_file.open("w", newline="", encoding="utf-8") as f:
            csv.writer(f).writerow(CLIP_COLUMNS)

    def _read_index(self) -> List[dict]:
        with self.index_file.open(newline="", encoding="utf-8") as f:
            return list(csv.DictReader(f))

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def download_name(clip: ClipSegment) -> str:
    """Filename a host should offer when exporting a clip."""
    stamp = datetime.datetime.fromtimestamp(clip.at_time).strftime("%Y%m%d_%H%M")
    return f"recording_{stamp}.{clip.extension}"
