"""Runtime logging helpers."""

from __future__ import annotations

import os
import sys
from logging import Handler
from typing import Literal

from loguru import logger
from rich import get_console
from rich.logging import RichHandler

LogProfile = Literal["default", "rich"]

_DEFAULT_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<7} | {name}:{function}:{line} | {message}"
_CONFIGURED: tuple[LogProfile, str] | None = None


def _build_rich_handler() -> Handler:
    return RichHandler(
        console=get_console(),
        show_level=True,
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=False,
    )


def configure_logging(*, profile: LogProfile = "default", level: str | None = None) -> None:
    """Configure process-level logging once."""
    global _CONFIGURED

    resolved_level = (level or os.getenv("CMDIALOG_LOG_LEVEL", "INFO")).upper()
    if _CONFIGURED == (profile, resolved_level):
        return

    logger.remove()
    if profile == "rich":
        logger.add(
            _build_rich_handler(),
            level=resolved_level,
            format="{message}",
            backtrace=False,
            diagnose=False,
        )
    else:
        logger.add(
            sys.stderr,
            level=resolved_level,
            format=_DEFAULT_FORMAT,
            backtrace=False,
            diagnose=False,
        )
    _CONFIGURED = (profile, resolved_level)
