from __future__ import annotations

import logging

from tasador.config import settings

_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)-8s %(name)s %(message)s"
_DATEFMT = "%Y-%m-%dT%H:%M:%S"


def _resolve_level(name: str) -> int:
    level = logging.getLevelName((name or "").strip().upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging() -> None:
    """Configure the root logger once.

    When something else (uvicorn, pytest) already installed handlers only the
    level is adjusted, so calling this repeatedly is harmless.
    """
    root = logging.getLogger()
    level = _resolve_level(settings.log_level)
    root.setLevel(level)
    if root.handlers:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT))
    root.addHandler(handler)
