"""Text formatting helpers for invoice cells."""

from __future__ import annotations

from datetime import date
from typing import Optional

DATE_FORMAT = "%Y-%m-%d"
DUE_ON_RECEIPT = "On Receipt"


def fmt_money(amount: float, symbol: str = "$") -> str:
    return f"{symbol}{amount:.2f}"


def fmt_percent(value: float) -> str:
    return f"{value:.2f} %"


def fmt_qty(qty: int) -> str:
    return str(int(qty))


def issued_label(issued_date: str, today: Optional[date] = None) -> str:
    """Return the issued-date text, defaulting to today's date (YYYY-MM-DD).

    Caller-supplied dates are printed verbatim, without parsing.
    """
    if issued_date:
        return issued_date
    return (today or date.today()).strftime(DATE_FORMAT)


def due_label(due_date: str) -> str:
    return due_date if due_date else DUE_ON_RECEIPT
