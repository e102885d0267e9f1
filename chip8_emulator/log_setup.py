"""
Logging setup for the CHIP-8 emulator front ends.

Library modules only do ``logging.getLogger(__name__)``; the CLI (or any
other presenter) calls setup_logging() once to attach handlers to the
``chip8_emulator`` logger:

  - console: rich RichHandler, WARNING+ by default
  - file:    optional, everything at DEBUG+, one file per session
             ``<log_dir>/<name>_YYYYMMDD_HHMMSS.log``
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "chip8_emulator"


def setup_logging(
    name: str = LOGGER_NAME,
    level: int = logging.DEBUG,
    console_level: int = logging.WARNING,
    log_dir: Optional[Path] = None,
    console: Optional[Console] = None,
) -> logging.Logger:
    """
    Configure and return a logger.

    Calling it again for the same name returns the configured logger
    untouched.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger
    logger.setLevel(level)

    # ── Console handler: only important stuff (WARNING+ default) ──
    ch = RichHandler(
        level=console_level,
        console=console or Console(stderr=True),
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    ch.setLevel(console_level)
    logger.addHandler(ch)

    # ── File handler: captures everything (DEBUG+) ──
    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        ts = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_dir / f"{name}_{ts}.log"
        fh = logging.FileHandler(str(log_file), encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(
            "%(asctime)s | %(levelname)-7s | %(name)s | %(funcName)s:%(lineno)d | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        logger.addHandler(fh)

        logger.info("=" * 60)
        logger.info("Logger initialized: %s", name)
        logger.info("Log file: %s", log_file)
        logger.info("Console level: %s", logging.getLevelName(console_level))
        logger.info("=" * 60)

    return logger


def teardown_logging(name: str = LOGGER_NAME):
    """Detach and close every handler set up by setup_logging()."""
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
