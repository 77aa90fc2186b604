"""Logging setup.

stdout carries the JSON-RPC channel, so every diagnostic goes to stderr
through a :class:`rich.logging.RichHandler`.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_HANDLER_NAME = "ghmcp-stderr"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach a stderr rich handler to the ``ghmcp`` logger (idempotent)."""
    logger = logging.getLogger("ghmcp")
    logger.setLevel(level)

    if not any(h.get_name() == _HANDLER_NAME for h in logger.handlers):
        handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter("[mcp-bridge] %(message)s"))
        logger.addHandler(handler)

    return logger
