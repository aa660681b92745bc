"""Public package API for invoice PDF generation."""

from __future__ import annotations

from typing import Any, Dict, Optional, Union

from .fonts import FontSet, load_font_set
from .models import InvoiceData, RowData, decode_invoice


def render_invoice(
    data: Union[InvoiceData, Dict[str, Any]],
    fonts: Optional[FontSet] = None,
) -> bytes:
    from .rendering import render_invoice as _render_invoice

    invoice = data if isinstance(data, InvoiceData) else InvoiceData.from_dict(data)
    return _render_invoice(invoice, fonts or load_font_set())


def run(host: str = "0.0.0.0", port: int = 3000) -> None:
    from .server import run as _run

    _run(host, port)


__all__ = [
    "FontSet",
    "InvoiceData",
    "RowData",
    "decode_invoice",
    "load_font_set",
    "render_invoice",
    "run",
]
