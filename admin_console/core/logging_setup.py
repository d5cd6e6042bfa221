from __future__ import annotations

import logging

from admin_console.core.config import settings

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    raw = str(level or settings.LOG_LEVEL or "INFO").strip().upper()
    resolved = logging.getLevelName(raw)
    if not isinstance(resolved, int):
        resolved = logging.INFO
    root = logging.getLogger("admin_console")
    root.setLevel(resolved)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)
