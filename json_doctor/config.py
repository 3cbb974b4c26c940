"""
Runtime knobs for json_doctor.

Debug logging is disabled by default. Enable it by setting JSON_DOCTOR_DEBUG=1;
every pipeline stage that changes the text is then reported on stderr.
"""

from __future__ import annotations

import logging
import os as _os

# Nested stringified-JSON unescaping: hard cap on whole-text iterations.
MAX_UNESCAPE_ITERATIONS = 10

# Characters shown on each side of a parse error position.
CONTEXT_WINDOW = 20

# Keep error payloads bounded.
ERROR_PREVIEW_LIMIT = 4000

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_FALSY = ("", "0", "false", "False", "no", "off")


def debug_enabled() -> bool:
    return _os.environ.get("JSON_DOCTOR_DEBUG", "").strip() not in _FALSY


def configure_logging(level: int = logging.DEBUG) -> logging.Logger:
    """Attach a stderr handler to the package logger (idempotent)."""
    logger = logging.getLogger("json_doctor")
    logger.setLevel(level)
    if not any(getattr(h, "_json_doctor", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        handler._json_doctor = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
    return logger


if debug_enabled():
    configure_logging()
