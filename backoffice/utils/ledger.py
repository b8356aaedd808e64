"""
POS Back Office - Ledger Arithmetic

Pure double-entry helpers shared by journal entries, invoice posting and the
trial balance. Nothing in here touches the database.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, Optional, Tuple

ZERO = Decimal("0")
ONE = Decimal("1")
CENT = Decimal("0.01")
FOUR_PLACES = Decimal("0.0001")
DEFAULT_TOLERANCE = Decimal("0.01")

DEBIT = "debit"
CREDIT = "credit"
LINE_TYPES = (DEBIT, CREDIT)


def to_decimal(value: Any) -> Decimal:
    """Coerce request/DB values to Decimal. None and blank strings become zero."""
    if value is None or value == "":
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def quantize_money(value: Any) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def equivalent_amount(original: Any, rate: Any = None) -> Decimal:
    """Amount in the system currency: ``original * rate`` to four places."""
    factor = to_decimal(rate) if rate not in (None, "") else ONE
    return (to_decimal(original) * factor).quantize(FOUR_PLACES, rounding=ROUND_HALF_UP)


def _get(line: Any, name: str) -> Any:
    if isinstance(line, dict):
        return line.get(name)
    return getattr(line, name, None)


def line_type_of(line: Any) -> str:
    value = _get(line, "type")
    # Enum members carry the string in .value
    value = getattr(value, "value", value)
    return str(value).lower() if value is not None else ""


def sum_sides(lines: Iterable[Any]) -> Tuple[Decimal, Decimal]:
    """
    Total the debit and credit sides of a set of lines.

    Lines may be dicts or objects exposing ``type`` and ``equivalent_amount``
    (falling back to ``amount``). Lines of any other type are ignored.
    """
    total_debit = ZERO
    total_credit = ZERO
    for line in lines:
        kind = line_type_of(line)
        amount = _get(line, "equivalent_amount")
        if amount is None:
            amount = _get(line, "amount")
        if kind == DEBIT:
            total_debit += to_decimal(amount)
        elif kind == CREDIT:
            total_credit += to_decimal(amount)
    return total_debit, total_credit


def is_balanced(debit: Any, credit: Any, tolerance: Any = DEFAULT_TOLERANCE) -> bool:
    return abs(to_decimal(debit) - to_decimal(credit)) <= to_decimal(tolerance)


def check_line_against_balance(
    nature: Any,
    line_type: str,
    amount: Any,
    balance: Any,
    account_label: str = "account",
) -> Optional[str]:
    """
    Validate one line against the account's current ledger balance.

    ``balance`` is ``sum(debit) - sum(credit)``. A debit-nature account cannot
    be credited beyond its balance; a credit-nature account with a credit
    balance cannot be debited beyond that balance. Returns an error message or
    None when the line is acceptable.
    """
    nature_value = str(getattr(nature, "value", nature)).lower()
    line_type = str(getattr(line_type, "value", line_type)).lower()
    amount = to_decimal(amount)
    balance = to_decimal(balance)

    if nature_value == DEBIT and line_type == CREDIT:
        if amount > balance:
            return (
                f"Insufficient balance in {account_label}. "
                f"Available: {balance}, requested credit: {amount}"
            )
    elif nature_value == CREDIT and line_type == DEBIT:
        available = abs(min(balance, ZERO))
        if available > ZERO and amount > available:
            return (
                f"Insufficient balance in {account_label}. "
                f"Available: {available}, requested debit: {amount}"
            )
    return None


def split_sides(
    line_type: str,
    original: Any,
    equivalent: Any,
) -> dict:
    """Map a line onto the ledger's user/equivalent debit/credit columns."""
    kind = str(getattr(line_type, "value", line_type)).lower()
    original = to_decimal(original)
    equivalent = to_decimal(equivalent)
    if kind == DEBIT:
        return {
            "user_debit_amount": original,
            "user_credit_amount": None,
            "equivalent_debit_amount": equivalent,
            "equivalent_credit_amount": None,
        }
    if kind == CREDIT:
        return {
            "user_debit_amount": None,
            "user_credit_amount": original,
            "equivalent_debit_amount": None,
            "equivalent_credit_amount": equivalent,
        }
    raise ValueError(f"Line type must be 'debit' or 'credit', got {line_type!r}")


def side_balance(total_debit: Any, total_credit: Any) -> Tuple[Decimal, Decimal, Decimal]:
    """
    Net an account's totals onto one side.

    Returns ``(balance, debit_balance, credit_balance)`` where balance is
    ``debit - credit`` and exactly one of the side columns may be non-zero.
    """
    balance = to_decimal(total_debit) - to_decimal(total_credit)
    if balance >= ZERO:
        return balance, balance, ZERO
    return balance, ZERO, -balance
