"""Fixed page layout: units are millimetres on an A4 portrait page."""

from __future__ import annotations

PAGE_FORMAT = "A4"
PAGE_UNIT = "mm"
PAGE_ORIENTATION = "P"

MARGIN_LEFT = 5
MARGIN_TOP = 10
MARGIN_RIGHT = 5
CELL_MARGIN = 5

CELL_H = 10
BLOCK_W = 100

FONT_SIZE_TITLE = 28
FONT_SIZE_NORMAL = 12

# Line advances between blocks.
TITLE_GAP = 10
DATE_GAP = 8
DATES_TO_PARTIES_GAP = 20
PARTY_LINE_GAP = 8
PARTIES_TO_TABLE_GAP = 24
ROW_GAP = 10
TABLE_TO_TOTALS_GAP = 10
TOTALS_TO_NOTES_GAP = 20

COL_ITEM_W = 90
COL_QTY_W = 30
COL_RATE_W = 40
COL_AMOUNT_W = 40

TOTALS_INDENT_W = COL_ITEM_W + COL_QTY_W
TOTALS_LABEL_W = COL_RATE_W
TOTALS_VALUE_W = COL_AMOUNT_W

NOTES_LABEL_W = 20
NOTES_TEXT_W = 180

COLOR_TITLE = (50, 60, 50)
COLOR_BAR = (0, 0, 0)
COLOR_BAR_TEXT = (255, 255, 255)
COLOR_TEXT = (0, 0, 0)
