"""
Logging setup shared by the runtime entry points.
"""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path


def setup_logging(level: str = "INFO", log_file: str | None = None,
                  max_size_mb: int = 5, backup_count: int = 2) -> logging.Logger:
    console_format = "%(asctime)s  %(levelname)-5s  %(message)s"
    file_format = "%(asctime)s [%(levelname)-7s] %(name)-32s | %(message)s"
    date_format = "%H:%M:%S"

    lvl = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if log_file else lvl)
    root.handlers.clear()

    console = logging.StreamHandler()
    console.setLevel(lvl)
    console.setFormatter(logging.Formatter(console_format, datefmt=date_format))
    root.addHandler(console)

    if log_file:
        Path(log_file).expanduser().parent.mkdir(parents=True, exist_ok=True)
        fh = logging.handlers.RotatingFileHandler(
            str(Path(log_file).expanduser()),
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count,
        )
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(file_format, datefmt=date_format))
        root.addHandler(fh)

    return root
