"""Logging for agentchat.

The engine never raises on bad input; it logs instead. Dropped events and
unknown ids go to DEBUG, session lifecycle (creation, seed, disconnect) to
VERBOSE, and per-event dispatch to TRACE. Nothing below WARNING is emitted
unless the CLI or config asks for it.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from agentchat.config.schema import LoggingConfig

TRACE = 5
VERBOSE = 15

logging.addLevelName(TRACE, "TRACE")
logging.addLevelName(VERBOSE, "VERBOSE")

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

# -v count -> level; higher counts clamp to TRACE
_VERBOSITY = (logging.ERROR, logging.WARNING, logging.INFO, VERBOSE, TRACE)

logger = logging.getLogger("agentchat")

_handler: logging.Handler | None = None


def resolve_level(config: LoggingConfig | None) -> int:
    """Effective level: ``verbose`` beats ``level``; unknown names mean INFO."""
    if config is None:
        return logging.INFO
    if config.verbose is not None:
        return _VERBOSITY[max(0, min(config.verbose, len(_VERBOSITY) - 1))]
    if config.level:
        level = logging.getLevelName(config.level.upper())
        if isinstance(level, int):
            return level
    return logging.INFO


def _open_handler(path: str | None) -> logging.Handler | None:
    if path:
        try:
            return logging.FileHandler(os.path.expanduser(path), encoding="utf-8")
        except OSError as e:
            if sys.stderr.isatty():
                print(f"[agentchat] Cannot open log file: {e}", file=sys.stderr)
    # A piped stderr belongs to the caller's output
    if sys.stderr.isatty():
        return logging.StreamHandler(sys.stderr)
    return None


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Install the agentchat handler once; later calls are no-ops.

    The log file comes from ``config.file``, which the config loader fills
    from ``AGENTCHAT_LOG`` when set.
    """
    global _handler
    if _handler is not None:
        return

    level = resolve_level(config)
    logger.setLevel(level)
    handler = _open_handler(config.file if config else None)
    if handler is None:
        return
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))
    logger.addHandler(handler)
    _handler = handler


def reset_logging() -> None:
    """Remove the installed handler so setup_logging() can run again."""
    global _handler
    if _handler is not None:
        logger.removeHandler(_handler)
        _handler.close()
        _handler = None


def get_logger(name: str | None = None) -> logging.Logger:
    """The agentchat logger, or its child ``agentchat.<name>``."""
    return logger.getChild(name) if name else logger
