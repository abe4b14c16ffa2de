"""
Logging configuration for the Inventory service.

``setup_logging`` attaches a console handler (and optionally a file handler)
to the root logger exactly once.
"""
import logging
import os
from pathlib import Path
from typing import Optional

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE") or None


def setup_logging(level: str = LOG_LEVEL, logfile: Optional[str] = LOG_FILE) -> None:
    """
    Configure the root logger.

    Args:
        level: Logging level name (e.g. ``"DEBUG"``), case insensitive
        logfile: Optional path of a file to also write records to
    """
    root = logging.getLogger()
    if root.handlers:
        # Already configured (uvicorn, pytest or a previous call)
        return

    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    if logfile:
        file_handler = logging.FileHandler(Path(logfile).resolve(), encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
