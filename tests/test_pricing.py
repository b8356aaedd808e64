"""
POS Back Office - Sales Document Arithmetic Tests
"""

from decimal import Decimal

from backoffice.utils.pricing import compute_line, compute_totals


class TestComputeLine:
    """Amounts of a single sales line."""

    def test_plain_line(self):
        line = compute_line("2", "50.00")
        assert line["subtotal"] == Decimal("100.00")
        assert line["discount_amount"] == Decimal("0.00")
        assert line["tax_amount"] == Decimal("0.00")
        assert line["line_total"] == Decimal("100.00")
        assert line["equivalent_amount"] == Decimal("100.00")
        assert line["exchange_rate"] == Decimal("1")

    def test_percentage_discount_and_tax(self):
        line = compute_line("4", "25.00", discount_percentage="10", tax_percentage="7.5")
        assert line["subtotal"] == Decimal("100.00")
        assert line["discount_amount"] == Decimal("10.00")
        assert line["amount_after_discount"] == Decimal("90.00")
        # 7.5% of the discounted amount
        assert line["tax_amount"] == Decimal("6.75")
        assert line["line_total"] == Decimal("96.75")

    def test_discount_amount_wins_over_percentage(self):
        line = compute_line("1", "200", discount_percentage="50", discount_amount="15")
        assert line["discount_amount"] == Decimal("15.00")
        assert line["amount_after_discount"] == Decimal("185.00")

    def test_explicit_tax_amount(self):
        line = compute_line("1", "100", tax_percentage="7.5", tax_amount="3")
        assert line["tax_amount"] == Decimal("3.00")
        assert line["line_total"] == Decimal("103.00")

    def test_withholding_tax(self):
        line = compute_line("1", "100", wht_amount="5")
        assert line["wht_amount"] == Decimal("5.00")
        assert line["amount_after_wht"] == Decimal("95.00")
        # WHT does not reduce the line total
        assert line["line_total"] == Decimal("100.00")

    def test_exchange_rate_equivalent(self):
        line = compute_line("3", "10", exchange_rate="1500.5")
        assert line["line_total"] == Decimal("30.00")
        assert line["equivalent_amount"] == Decimal("45015.00")
        assert line["exchange_rate"] == Decimal("1500.5")

    def test_rounding(self):
        line = compute_line("3", "0.335")
        assert line["subtotal"] == Decimal("1.01")


class TestComputeTotals:
    """Header totals."""

    def test_totals_across_lines(self):
        lines = [
            compute_line("2", "50", tax_percentage="10"),
            compute_line("1", "40", discount_amount="4", wht_amount="2"),
        ]
        totals = compute_totals(lines)
        assert totals["subtotal"] == Decimal("140.00")
        assert totals["discount_amount"] == Decimal("4.00")
        assert totals["tax_amount"] == Decimal("10.00")
        assert totals["total_wht_amount"] == Decimal("2.00")
        assert totals["total_amount"] == Decimal("146.00")
        assert totals["amount_after_discount"] == Decimal("136.00")
        assert totals["amount_after_wht"] == Decimal("134.00")
        assert totals["equivalent_amount"] == Decimal("146.00")

    def test_equivalent_uses_header_rate(self):
        totals = compute_totals([compute_line("1", "100", exchange_rate="2")], exchange_rate="2")
        assert totals["total_amount"] == Decimal("100.00")
        assert totals["equivalent_amount"] == Decimal("200.00")

    def test_no_lines(self):
        totals = compute_totals([])
        assert totals["total_amount"] == Decimal("0")
        assert totals["equivalent_amount"] == Decimal("0.00")

    def test_discount_equal_to_subtotal_zeroes_the_line(self):
        line = compute_line("2", "10", discount_amount="20", tax_percentage="10")
        assert line["amount_after_discount"] == Decimal("0.00")
        assert line["tax_amount"] == Decimal("0.00")
        assert line["line_total"] == Decimal("0.00")
