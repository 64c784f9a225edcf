#!/usr/bin/env python3
"""
Centralized logging for the noise monitor.

Console output is color-coded when attached to a terminal; an optional
UTF-8 log file receives the same records.

Usage:
    from logger import get_logger
    log = get_logger(__name__)
    log.info("Monitoring started")
    log.warning("Event log not open, dropping write", exc_info=True)
"""
import logging
import sys
from pathlib import Path
from typing import Optional

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class ColoredFormatter(logging.Formatter):
    """Color-coded log formatter for terminal output."""

    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
        'RESET': '\033[0m'
    }

    def format(self, record):
        if sys.stdout.isatty():
            color = self.COLORS.get(record.levelname, '')
            reset = self.COLORS['RESET']
            record = logging.makeLogRecord(record.__dict__)
            record.levelname = f"{color}{record.levelname}{reset}"
        return super().format(record)


def setup_logging(
    log_file: Optional[Path] = None,
    level: str = "INFO",
    debug: bool = False
) -> logging.Logger:
    """
    Set up logging configuration.

    Args:
        log_file: Path to log file (if None, only console logging)
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        debug: If True, force DEBUG level

    Returns:
        Root logger
    """
    if debug:
        level = "DEBUG"

    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(ColoredFormatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(log_level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        root_logger.addHandler(file_handler)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a module.

    Args:
        name: Module name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def log_session_banner(logger: logging.Logger, config: dict) -> None:
    """Log the effective monitoring settings at startup."""
    audio = config["audio"]
    monitoring = config["monitoring"]
    detection = config["detection"]
    capture = config["capture"]
    storage = config["storage"]

    logger.info("=" * 60)
    logger.info("NOISE MONITOR")
    logger.info("=" * 60)
    logger.info(f"Audio Device: {audio['device']} @ {audio['sample_rate']} Hz, gain {audio['gain']}")
    logger.info(f"Tick Interval: {monitoring['tick_interval_sec']}s, threshold {monitoring['threshold']}")
    logger.info(f"Debounce Window: {detection['debounce_window_sec']}s")
    logger.info(
        f"Capture Window: {capture['capture_window_sec']}s, "
        f"pre-roll {capture['pre_roll_chunks']} x {capture['chunk_interval_sec']}s chunks"
    )
    logger.info(f"Events Log: {Path(storage['events_file']).resolve()}")
    logger.info(f"Clips Directory: {Path(storage['clips_dir']).resolve()}")
    logger.info("=" * 60)
