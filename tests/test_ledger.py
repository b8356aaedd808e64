"""
POS Back Office - Ledger Arithmetic Unit Tests

Pure double-entry helpers: equivalents, side totals, balance checks and
netting onto one side.
"""

from decimal import Decimal

import pytest

from backoffice.models.account import AccountNature
from backoffice.models.journal_entry import LineType
from backoffice.utils.ledger import (
    check_line_against_balance,
    equivalent_amount,
    is_balanced,
    quantize_money,
    side_balance,
    split_sides,
    sum_sides,
    to_decimal,
)


class TestToDecimal:
    """Coercion of request and database values."""

    def test_none_and_blank_are_zero(self):
        assert to_decimal(None) == Decimal("0")
        assert to_decimal("") == Decimal("0")

    def test_floats_go_through_str(self):
        assert to_decimal(0.1) == Decimal("0.1")

    def test_decimal_passthrough(self):
        value = Decimal("12.3456")
        assert to_decimal(value) is value

    def test_quantize_money_rounds_half_up(self):
        assert quantize_money("2.345") == Decimal("2.35")
        assert quantize_money("2.344") == Decimal("2.34")


class TestEquivalentAmount:
    """Equivalent = original x rate, four decimal places."""

    def test_rate_defaults_to_one(self):
        assert equivalent_amount("150.5") == Decimal("150.5000")
        assert equivalent_amount("150.5", None) == Decimal("150.5000")

    def test_multiplies_by_rate(self):
        assert equivalent_amount("100", "1550.25") == Decimal("155025.0000")

    def test_rounds_to_four_places(self):
        assert equivalent_amount("1", "0.333333") == Decimal("0.3333")
        assert equivalent_amount("3", "0.00005") == Decimal("0.0002")


class TestSumSides:
    """Totalling debit and credit lines."""

    def test_dict_lines(self):
        lines = [
            {"type": "debit", "amount": Decimal("100")},
            {"type": "credit", "amount": Decimal("60")},
            {"type": "credit", "amount": Decimal("40")},
        ]
        assert sum_sides(lines) == (Decimal("100"), Decimal("100"))

    def test_equivalent_amount_preferred_over_amount(self):
        lines = [
            {"type": "debit", "amount": Decimal("10"), "equivalent_amount": Decimal("15500")},
            {"type": "credit", "amount": Decimal("15500")},
        ]
        assert sum_sides(lines) == (Decimal("15500"), Decimal("15500"))

    def test_enum_types_and_case_are_accepted(self):
        lines = [
            {"type": LineType.DEBIT, "amount": "5"},
            {"type": "CREDIT", "amount": "5"},
        ]
        assert sum_sides(lines) == (Decimal("5"), Decimal("5"))

    def test_unknown_types_are_ignored(self):
        lines = [
            {"type": "debit", "amount": "5"},
            {"type": "memo", "amount": "999"},
        ]
        assert sum_sides(lines) == (Decimal("5"), Decimal("0"))

    def test_objects_with_attributes(self):
        class Line:
            def __init__(self, type, equivalent_amount):
                self.type = type
                self.equivalent_amount = equivalent_amount

        debit, credit = sum_sides([Line("debit", Decimal("7.5")), Line("credit", Decimal("7.5"))])
        assert debit == credit == Decimal("7.5")


class TestIsBalanced:
    """Tolerance comparison of the two sides."""

    def test_exact_match(self):
        assert is_balanced(Decimal("100"), Decimal("100"))

    def test_within_default_tolerance(self):
        assert is_balanced(Decimal("100.00"), Decimal("100.01"))

    def test_outside_tolerance(self):
        assert not is_balanced(Decimal("100.00"), Decimal("100.02"))

    def test_custom_tolerance(self):
        assert is_balanced("10", "10.5", tolerance="1")
        assert not is_balanced("10", "10.5", tolerance="0.1")


class TestCheckLineAgainstBalance:
    """A line may not overdraw its account."""

    def test_debit_account_credit_within_balance(self):
        assert check_line_against_balance(AccountNature.DEBIT, "credit", "50", "100") is None

    def test_debit_account_credit_beyond_balance(self):
        error = check_line_against_balance(AccountNature.DEBIT, "credit", "150", "100", "account 1000 (Cash)")
        assert error is not None
        assert "Insufficient balance in account 1000 (Cash)" in error
        assert "Available: 100" in error

    def test_debit_account_credit_with_zero_balance(self):
        assert check_line_against_balance("DEBIT", "credit", "1", "0") is not None

    def test_debiting_a_debit_account_is_always_allowed(self):
        assert check_line_against_balance("DEBIT", "debit", "1000000", "0") is None

    def test_credit_account_debit_beyond_credit_balance(self):
        # Credit balance of 80 is stored as debit - credit = -80
        error = check_line_against_balance(AccountNature.CREDIT, "debit", "100", "-80")
        assert error is not None
        assert "Available: 80" in error

    def test_credit_account_debit_within_credit_balance(self):
        assert check_line_against_balance(AccountNature.CREDIT, "debit", "80", "-80") is None

    def test_credit_account_without_credit_balance_is_not_checked(self):
        assert check_line_against_balance(AccountNature.CREDIT, "debit", "100", "0") is None
        assert check_line_against_balance(AccountNature.CREDIT, "debit", "100", "25") is None


class TestSplitSides:
    """Mapping a line onto the ledger's four amount columns."""

    def test_debit(self):
        assert split_sides("debit", "10", "15500") == {
            "user_debit_amount": Decimal("10"),
            "user_credit_amount": None,
            "equivalent_debit_amount": Decimal("15500"),
            "equivalent_credit_amount": None,
        }

    def test_credit(self):
        sides = split_sides(LineType.CREDIT, "10", "10")
        assert sides["user_debit_amount"] is None
        assert sides["equivalent_credit_amount"] == Decimal("10")

    def test_rejects_other_types(self):
        with pytest.raises(ValueError):
            split_sides("memo", "1", "1")


class TestSideBalance:
    """Netting totals onto a single side."""

    def test_debit_balance(self):
        assert side_balance("150", "50") == (Decimal("100"), Decimal("100"), Decimal("0"))

    def test_credit_balance(self):
        assert side_balance("50", "150") == (Decimal("-100"), Decimal("0"), Decimal("100"))

    def test_zero(self):
        assert side_balance("0", "0") == (Decimal("0"), Decimal("0"), Decimal("0"))
