"""
POS Back Office - Sales Document Arithmetic

Line and header amounts for sales orders and invoices.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, Optional

from backoffice.utils.ledger import CENT, ONE, ZERO, to_decimal

HUNDRED = Decimal("100")


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def compute_line(
    quantity: Any,
    unit_price: Any,
    discount_percentage: Any = None,
    discount_amount: Optional[Any] = None,
    tax_percentage: Any = None,
    tax_amount: Optional[Any] = None,
    wht_amount: Any = None,
    exchange_rate: Any = None,
) -> dict:
    """
    Amounts of one line.

    subtotal = quantity x unit price; a given discount amount wins over the
    percentage; tax defaults to after-discount x tax% / 100; the line total is
    after-discount + tax and its equivalent is line total x rate.
    """
    rate = to_decimal(exchange_rate) if exchange_rate not in (None, "") else ONE
    subtotal = _money(to_decimal(quantity) * to_decimal(unit_price))

    if discount_amount is not None:
        discount = _money(to_decimal(discount_amount))
    else:
        discount = _money(subtotal * to_decimal(discount_percentage) / HUNDRED)
    after_discount = subtotal - discount

    if tax_amount is not None:
        tax = _money(to_decimal(tax_amount))
    else:
        tax = _money(after_discount * to_decimal(tax_percentage) / HUNDRED)

    wht = _money(to_decimal(wht_amount))
    line_total = after_discount + tax
    return {
        "subtotal": subtotal,
        "discount_amount": discount,
        "amount_after_discount": after_discount,
        "tax_amount": tax,
        "wht_amount": wht,
        "line_total": line_total,
        "amount_after_wht": after_discount - wht,
        "equivalent_amount": _money(line_total * rate),
        "exchange_rate": rate,
    }


def compute_totals(lines: Iterable[dict], exchange_rate: Any = None) -> dict:
    """Header totals from computed lines: total = subtotal - discount + tax."""
    rate = to_decimal(exchange_rate) if exchange_rate not in (None, "") else ONE
    subtotal = discount = tax = wht = ZERO
    for line in lines:
        subtotal += line["subtotal"]
        discount += line["discount_amount"]
        tax += line["tax_amount"]
        wht += line["wht_amount"]

    total = subtotal - discount + tax
    after_discount = subtotal - discount
    return {
        "subtotal": subtotal,
        "discount_amount": discount,
        "tax_amount": tax,
        "total_wht_amount": wht,
        "total_amount": total,
        "amount_after_discount": after_discount,
        "amount_after_wht": after_discount - wht,
        "equivalent_amount": _money(total * rate),
    }
