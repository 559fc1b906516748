"""Logging helpers with consistent formatting."""

from __future__ import annotations

import logging
import os
import sys

from rich.logging import RichHandler

from mailrelay.utils.env import get_bool_env


def _default_level() -> int:
    name = os.getenv("MAILRELAY_LOG_LEVEL", "INFO").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def get_logger(name: str, level: int | None = None, *, rich: bool | None = None) -> logging.Logger:
    """Configure and return a logger.

    Handlers are attached once per logger name, so repeated calls are cheap.
    ``MAILRELAY_RICH_LOGS=0`` switches to plain stdout output (useful under
    process supervisors that do not render ANSI).
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    level = _default_level() if level is None else level
    if rich is None:
        rich = get_bool_env("MAILRELAY_RICH_LOGS", default=True)
    logger.setLevel(level)

    if rich:
        handler: logging.Handler = RichHandler(
            level=level,
            markup=False,
            rich_tracebacks=True,
            tracebacks_show_locals=False,
            show_time=True,
            show_path=False,
        )
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    else:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(level)
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s %(name)s %(levelname)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )

    logger.addHandler(handler)
    logger.propagate = False
    return logger
