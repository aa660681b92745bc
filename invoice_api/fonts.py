"""Font discovery, done once at startup."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Optional

from .config import FONT_DIR

REGULAR_CANDIDATES = ["Outfit-Regular.ttf", "DejaVuSans.ttf"]
BOLD_CANDIDATES = ["Outfit-SemiBold.ttf", "DejaVuSans-Bold.ttf"]

SYSTEM_REGULAR_CANDIDATES = [
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/dejavu/DejaVuSans.ttf",
    "/Library/Fonts/DejaVuSans.ttf",
]
SYSTEM_BOLD_CANDIDATES = [
    "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
    "/usr/share/fonts/dejavu/DejaVuSans-Bold.ttf",
    "/Library/Fonts/DejaVuSans-Bold.ttf",
]


class FontNotFoundError(RuntimeError):
    """Raised at startup when a required font weight cannot be located."""


@dataclass(frozen=True)
class FontSet:
    """Resolved font files, registered on each new drawing surface."""

    regular_path: str
    bold_path: str
    family: str = "InvoiceFont"


def find_font_path(env_var: str, candidates: List[str]) -> Optional[str]:
    override = os.getenv(env_var)
    if override and os.path.isfile(override):
        return override

    for path in candidates:
        if os.path.isfile(path):
            return path
    return None


def load_font_set(font_dir: Optional[str] = None, system_fallback: bool = True) -> FontSet:
    font_dir = font_dir or FONT_DIR
    system_regular = SYSTEM_REGULAR_CANDIDATES if system_fallback else []
    system_bold = SYSTEM_BOLD_CANDIDATES if system_fallback else []

    regular_path = find_font_path(
        "INVOICE_FONT_PATH",
        [os.path.join(font_dir, name) for name in REGULAR_CANDIDATES] + system_regular,
    )
    if not regular_path:
        raise FontNotFoundError(
            f"Regular font not found in {font_dir}. Set INVOICE_FONT_PATH to a valid TTF file."
        )

    bold_path = find_font_path(
        "INVOICE_FONT_BOLD_PATH",
        [os.path.join(font_dir, name) for name in BOLD_CANDIDATES] + system_bold,
    )
    if not bold_path:
        raise FontNotFoundError(
            f"Semibold font not found in {font_dir}. Set INVOICE_FONT_BOLD_PATH to a valid TTF file."
        )

    return FontSet(regular_path=regular_path, bold_path=bold_path)
