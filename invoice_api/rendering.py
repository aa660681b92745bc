"""Invoice PDF rendering logic."""

from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Tuple, Union

from fpdf import FPDF  # type: ignore
from fpdf.errors import FPDFException  # type: ignore

from .fonts import FontSet
from .formatting import due_label, fmt_money, fmt_percent, fmt_qty, issued_label
from .layout import (
    BLOCK_W,
    CELL_H,
    CELL_MARGIN,
    COL_AMOUNT_W,
    COL_ITEM_W,
    COL_QTY_W,
    COL_RATE_W,
    COLOR_BAR,
    COLOR_BAR_TEXT,
    COLOR_TEXT,
    COLOR_TITLE,
    DATE_GAP,
    DATES_TO_PARTIES_GAP,
    FONT_SIZE_NORMAL,
    FONT_SIZE_TITLE,
    MARGIN_LEFT,
    MARGIN_RIGHT,
    MARGIN_TOP,
    NOTES_LABEL_W,
    NOTES_TEXT_W,
    PAGE_FORMAT,
    PAGE_ORIENTATION,
    PAGE_UNIT,
    PARTIES_TO_TABLE_GAP,
    PARTY_LINE_GAP,
    ROW_GAP,
    TABLE_TO_TOTALS_GAP,
    TITLE_GAP,
    TOTALS_INDENT_W,
    TOTALS_LABEL_W,
    TOTALS_TO_NOTES_GAP,
    TOTALS_VALUE_W,
)
from .models import InvoiceData, RowData

REGULAR = ""
BOLD = "B"


class RenderError(RuntimeError):
    """Raised when the finished document cannot be produced or written."""


class DrawingSurface(Protocol):
    def add_page(self) -> None:
        ...

    def set_font(self, family: str, style: str = "", size: float = 0) -> None:
        ...

    def set_text_color(self, r: int, g: int = -1, b: int = -1) -> None:
        ...

    def set_fill_color(self, r: int, g: int = -1, b: int = -1) -> None:
        ...

    def cell(self, w: float, h: float, text: str = "", *args, **kwargs) -> None:
        ...

    def ln(self, h: Optional[float] = None) -> None:
        ...

    def output(self, name: str = "") -> Union[bytes, bytearray, None]:
        ...


def create_surface(fonts: FontSet) -> FPDF:
    pdf = FPDF(orientation=PAGE_ORIENTATION, unit=PAGE_UNIT, format=PAGE_FORMAT)
    pdf.add_font(fonts.family, REGULAR, fonts.regular_path)
    pdf.add_font(fonts.family, BOLD, fonts.bold_path)
    pdf.set_margins(MARGIN_LEFT, MARGIN_TOP, MARGIN_RIGHT)
    pdf.c_margin = CELL_MARGIN
    return pdf


class InvoiceRenderer:
    """Draws one invoice onto a single page.

    The layout is a fixed top-to-bottom sequence of cells; amounts are
    printed exactly as supplied.
    """

    def __init__(
        self,
        invoice: InvoiceData,
        fonts: FontSet,
        surface: Optional[DrawingSurface] = None,
        today: Optional[date] = None,
    ) -> None:
        self.invoice = invoice
        self.fonts = fonts
        self.surface = surface if surface is not None else create_surface(fonts)
        self.today = today

    def _font(self, style: str, size: int = FONT_SIZE_NORMAL) -> None:
        self.surface.set_font(self.fonts.family, style, size)

    def _text_color(self, color: Tuple[int, int, int]) -> None:
        self.surface.set_text_color(*color)

    def _draw_header(self) -> None:
        self._font(REGULAR, FONT_SIZE_TITLE)
        self._text_color(COLOR_TITLE)
        self.surface.cell(BLOCK_W, CELL_H, f"INVOICE #{self.invoice.invoice_number}")
        self.surface.ln(TITLE_GAP)

        self._font(BOLD)
        self.surface.cell(BLOCK_W, CELL_H, f"Issued : {issued_label(self.invoice.issued_date, self.today)}")
        self.surface.ln(DATE_GAP)
        self.surface.cell(BLOCK_W, CELL_H, f"Due : {due_label(self.invoice.due_date)}")
        self.surface.ln(DATES_TO_PARTIES_GAP)

    def _draw_parties(self) -> None:
        self.surface.cell(BLOCK_W, CELL_H, "BILL TO :")
        self.surface.cell(BLOCK_W, CELL_H, "PAY TO :")
        self.surface.ln(PARTY_LINE_GAP)

        invoice = self.invoice
        pairs = [
            (invoice.client_name, invoice.your_name),
            (invoice.client_address, invoice.your_address),
            (invoice.client_city_state_zip, invoice.your_city_state_zip),
        ]
        self._font(REGULAR)
        for index, (client, issuer) in enumerate(pairs):
            self.surface.cell(BLOCK_W, CELL_H, client)
            self.surface.cell(BLOCK_W, CELL_H, issuer)
            last = index == len(pairs) - 1
            self.surface.ln(PARTIES_TO_TABLE_GAP if last else PARTY_LINE_GAP)

    def _draw_table_header(self) -> None:
        self._font(BOLD)
        self.surface.set_fill_color(*COLOR_BAR)
        self._text_color(COLOR_BAR_TEXT)
        for label, width in (
            ("Items", COL_ITEM_W),
            ("Qty", COL_QTY_W),
            ("Rate", COL_RATE_W),
            ("Amount", COL_AMOUNT_W),
        ):
            self.surface.cell(width, CELL_H, label, fill=True)
        self.surface.ln(ROW_GAP)

    def _draw_row(self, row: RowData) -> None:
        self.surface.cell(COL_ITEM_W, CELL_H, row.name)
        self.surface.cell(COL_QTY_W, CELL_H, fmt_qty(row.quantity))
        self.surface.cell(COL_RATE_W, CELL_H, fmt_money(row.rate))
        self.surface.cell(COL_AMOUNT_W, CELL_H, fmt_money(row.amount))
        self.surface.ln(ROW_GAP)

    def _draw_items(self) -> None:
        self._font(REGULAR)
        self._text_color(COLOR_TEXT)
        for row in self.invoice.rows:
            self._draw_row(row)

    def _draw_total_line(self, label: str, value: str) -> None:
        self.surface.cell(TOTALS_INDENT_W, CELL_H, "")
        self._font(BOLD)
        self.surface.cell(TOTALS_LABEL_W, CELL_H, label)
        self._font(REGULAR)
        self.surface.cell(TOTALS_VALUE_W, CELL_H, value)

    def _draw_totals(self) -> None:
        invoice = self.invoice
        self.surface.ln(TABLE_TO_TOTALS_GAP)

        self._draw_total_line("SubTotal", fmt_money(invoice.subtotal))
        self.surface.ln(ROW_GAP)

        # Zero means "not applied"; negative values are still printed.
        if invoice.discount != 0:
            self._draw_total_line("Discount", fmt_percent(invoice.discount))
            self.surface.ln(ROW_GAP)
        if invoice.tax != 0:
            self._draw_total_line("Tax", fmt_percent(invoice.tax))
            self.surface.ln(ROW_GAP)

        self._draw_total_line("Total", fmt_money(invoice.total))

    def _draw_notes(self) -> None:
        self.surface.ln(TOTALS_TO_NOTES_GAP)
        self._font(BOLD)
        self.surface.cell(NOTES_LABEL_W, CELL_H, "Notes: ")
        self._font(REGULAR)
        self.surface.cell(NOTES_TEXT_W, CELL_H, self.invoice.note)

    def draw(self) -> None:
        self.surface.add_page()
        self._draw_header()
        self._draw_parties()
        self._draw_table_header()
        self._draw_items()
        self._draw_totals()
        self._draw_notes()

    def render(self) -> bytes:
        self.draw()
        try:
            pdf_blob = self.surface.output()
        except (OSError, FPDFException) as exc:
            raise RenderError(f"PDF serialization failed: {exc}") from exc
        if isinstance(pdf_blob, (bytes, bytearray)):
            return bytes(pdf_blob)
        raise RenderError(f"Unexpected PDF output type: {type(pdf_blob).__name__}")

    def render_to(self, path: str) -> None:
        self.draw()
        try:
            self.surface.output(path)
        except (OSError, FPDFException) as exc:
            raise RenderError(f"Could not write invoice to {path}: {exc}") from exc


def render_invoice(invoice: InvoiceData, fonts: FontSet) -> bytes:
    return InvoiceRenderer(invoice, fonts).render()


def write_invoice(invoice: InvoiceData, fonts: FontSet, path: str) -> None:
    InvoiceRenderer(invoice, fonts).render_to(path)
