"""Invoice request values and JSON decoding."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from typing import Any, Mapping, Tuple


class InvoicePayloadError(ValueError):
    """Raised when a request body cannot be decoded into an invoice."""


INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


def _reject_constant(token: str) -> Any:
    raise InvoicePayloadError(f"invalid JSON number literal {token!r}")


def _json_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _lookup(data: Mapping[str, Any], key: str) -> Any:
    # Exact key first, then a case-insensitive match.
    if key in data:
        return data[key]
    folded = key.casefold()
    for candidate, value in data.items():
        if candidate.casefold() == folded:
            return value
    return None


def _get_int(data: Mapping[str, Any], key: str, owner: str) -> int:
    value = _lookup(data, key)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvoicePayloadError(
            f"cannot decode {_json_type(value)} into field {owner}.{key} of type int"
        )
    if isinstance(value, float):
        if not value.is_integer():
            raise InvoicePayloadError(
                f"cannot decode number {value!r} into field {owner}.{key} of type int"
            )
        value = int(value)
    if not INT64_MIN <= value <= INT64_MAX:
        raise InvoicePayloadError(
            f"number {value} overflows field {owner}.{key} of type int"
        )
    return value


def _get_float(data: Mapping[str, Any], key: str, owner: str) -> float:
    value = _lookup(data, key)
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvoicePayloadError(
            f"cannot decode {_json_type(value)} into field {owner}.{key} of type float"
        )
    number = float(value)
    if not math.isfinite(number):
        raise InvoicePayloadError(
            f"number {value!r} overflows field {owner}.{key} of type float"
        )
    return number


def _get_str(data: Mapping[str, Any], key: str, owner: str) -> str:
    value = _lookup(data, key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise InvoicePayloadError(
            f"cannot decode {_json_type(value)} into field {owner}.{key} of type string"
        )
    return value


@dataclass(frozen=True)
class RowData:
    name: str = ""
    quantity: int = 0
    rate: float = 0.0
    amount: float = 0.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RowData":
        return cls(
            name=_get_str(data, "Name", "RowData"),
            quantity=_get_int(data, "Quantity", "RowData"),
            rate=_get_float(data, "Rate", "RowData"),
            amount=_get_float(data, "Amount", "RowData"),
        )


@dataclass(frozen=True)
class InvoiceData:
    """A single invoice as supplied by the caller.

    Amounts are taken as given; nothing here recomputes subtotal or total
    from the rows.
    """

    invoice_number: int = 0
    issued_date: str = ""
    due_date: str = ""
    client_name: str = ""
    client_address: str = ""
    client_city_state_zip: str = ""
    your_name: str = ""
    your_address: str = ""
    your_city_state_zip: str = ""
    rows: Tuple[RowData, ...] = field(default_factory=tuple)
    subtotal: float = 0.0
    discount: float = 0.0
    tax: float = 0.0
    total: float = 0.0
    note: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "InvoiceData":
        owner = "InvoiceData"
        raw_rows = _lookup(data, "Rows")
        if raw_rows is None:
            raw_rows = []
        if not isinstance(raw_rows, list):
            raise InvoicePayloadError(
                f"cannot decode {_json_type(raw_rows)} into field {owner}.Rows of type array"
            )

        rows = []
        for index, raw_row in enumerate(raw_rows):
            if raw_row is None:
                rows.append(RowData())
                continue
            if not isinstance(raw_row, dict):
                raise InvoicePayloadError(
                    f"cannot decode {_json_type(raw_row)} into field {owner}.Rows[{index}] of type object"
                )
            rows.append(RowData.from_dict(raw_row))

        return cls(
            invoice_number=_get_int(data, "InvoiceNumber", owner),
            issued_date=_get_str(data, "IssuedDate", owner),
            due_date=_get_str(data, "DueDate", owner),
            client_name=_get_str(data, "ClientName", owner),
            client_address=_get_str(data, "ClientAddress", owner),
            client_city_state_zip=_get_str(data, "ClientCityStateZip", owner),
            your_name=_get_str(data, "YourName", owner),
            your_address=_get_str(data, "YourAddress", owner),
            your_city_state_zip=_get_str(data, "YourCityStateZip", owner),
            rows=tuple(rows),
            subtotal=_get_float(data, "SubTotal", owner),
            discount=_get_float(data, "Discount", owner),
            tax=_get_float(data, "Tax", owner),
            total=_get_float(data, "Total", owner),
            note=_get_str(data, "Note", owner),
        )


def decode_invoice(body: bytes) -> InvoiceData:
    try:
        payload = json.loads(body.decode("utf-8"), parse_constant=_reject_constant)
    except UnicodeDecodeError as exc:
        raise InvoicePayloadError("request body must be UTF-8 encoded JSON") from exc
    except json.JSONDecodeError as exc:
        raise InvoicePayloadError(f"{exc.msg} (line {exc.lineno}, column {exc.colno})") from exc

    if not isinstance(payload, dict):
        raise InvoicePayloadError(f"cannot decode {_json_type(payload)} into InvoiceData")
    return InvoiceData.from_dict(payload)

