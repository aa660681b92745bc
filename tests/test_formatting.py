import unittest
from datetime import date

from invoice_api.formatting import due_label, fmt_money, fmt_percent, fmt_qty, issued_label


class FormattingTests(unittest.TestCase):
    def test_fmt_money_uses_two_decimals_without_separators(self) -> None:
        self.assertEqual(fmt_money(5), "$5.00")
        self.assertEqual(fmt_money(1234567.891), "$1234567.89")
        self.assertEqual(fmt_money(-2.5), "$-2.50")

    def test_fmt_percent_appends_percent_sign(self) -> None:
        self.assertEqual(fmt_percent(10), "10.00 %")
        self.assertEqual(fmt_percent(-3.125), "-3.12 %")

    def test_fmt_qty_prints_plain_integer(self) -> None:
        self.assertEqual(fmt_qty(2), "2")
        self.assertEqual(fmt_qty(12000), "12000")

    def test_issued_label_defaults_to_today(self) -> None:
        self.assertEqual(issued_label("", date(2024, 2, 9)), "2024-02-09")
        self.assertEqual(issued_label(""), date.today().strftime("%Y-%m-%d"))

    def test_issued_label_keeps_caller_text_verbatim(self) -> None:
        self.assertEqual(issued_label("next tuesday", date(2024, 2, 9)), "next tuesday")

    def test_due_label_defaults_to_on_receipt(self) -> None:
        self.assertEqual(due_label(""), "On Receipt")
        self.assertEqual(due_label("2024-12-31"), "2024-12-31")


if __name__ == "__main__":
    unittest.main()
