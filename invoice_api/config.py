"""Runtime configuration loaded from environment variables."""

from __future__ import annotations

import os
import tempfile

_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def env_int(name: str, default: int, minimum: int = 1) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value >= minimum else default


def env_str(name: str, default: str) -> str:
    raw = os.getenv(name, "").strip()
    return raw or default


HOST = env_str("INVOICE_HOST", "0.0.0.0")
PORT = env_int("INVOICE_PORT", 3000, minimum=0)

OUTPUT_DIR = env_str("INVOICE_OUTPUT_DIR", tempfile.gettempdir())
FONT_DIR = env_str("INVOICE_FONT_DIR", os.path.join(_PROJECT_ROOT, "assets", "fonts"))

MAX_BODY_BYTES = env_int("INVOICE_MAX_BODY_BYTES", 1024 * 1024, minimum=1024)
LISTEN_BACKLOG = env_int("INVOICE_LISTEN_BACKLOG", 128, minimum=1)
LOG_LEVEL = env_str("INVOICE_LOG_LEVEL", "INFO").upper()
