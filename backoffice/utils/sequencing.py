"""
POS Back Office - Reference Number Sequencing

Human-readable document numbers are allocated by reading the last number in
use, incrementing its numeric suffix and inserting. Two requests can pick the
same number; the loser hits the unique constraint, rolls back to a savepoint
and tries again with a freshly computed number.
"""

import logging
import re
from datetime import date
from typing import Awaitable, Callable, Optional, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.utils.error_handling import ReferenceSequenceExhaustedException

logger = logging.getLogger(__name__)

T = TypeVar("T")

_TRAILING_NUMBER = re.compile(r"(\d+)$")


def parse_trailing_number(reference: Optional[str]) -> Optional[int]:
    """Return the digits at the end of ``reference`` as an int, or None."""
    if not reference:
        return None
    match = _TRAILING_NUMBER.search(reference)
    if not match:
        return None
    return int(match.group(1))


def next_sequence(last_reference: Optional[str], fallback_count: int = 0) -> int:
    """
    Next number after ``last_reference``.

    When there is no usable previous reference the sequence starts after
    ``fallback_count`` (the number of documents already in scope).
    """
    last = parse_trailing_number(last_reference)
    if last is None:
        return fallback_count + 1
    return last + 1


def format_journal_reference(year: int, on_date: date, company_code: str, sequence: int) -> str:
    """``JE/2024/20240315/ACME/0000042``"""
    return f"JE/{year}/{on_date.strftime('%Y%m%d')}/{company_code}/{sequence:07d}"


def format_opening_balance_reference(start: date, end: date, company_code: str, sequence: int) -> str:
    """``2024/2024-01-01_2024-12-31/ACME/0000003``"""
    return f"{start.year}/{start.isoformat()}_{end.isoformat()}/{company_code}/{sequence:07d}"


def format_dated_reference(prefix: str, on_date: date, sequence: int, width: int = 4) -> str:
    """``SO-20240315-0001``, ``INV-20240315-0012``"""
    return f"{prefix}-{on_date.strftime('%Y%m%d')}-{sequence:0{width}d}"


def company_code_for(code: Optional[str], name: Optional[str], default: str) -> str:
    """
    Code used for ``{COMPANY_CODE}``: the company's own code, else the first
    three alphanumerics of its name, else ``default``.
    """
    if code and code.strip():
        return code.strip().upper()
    if name:
        letters = re.sub(r"[^A-Za-z0-9]", "", name)[:3]
        if letters:
            return letters.upper()
    return default


def render_code_format(
    fmt: str,
    prefix: str,
    number: int,
    padding: int = 4,
    company_code: Optional[str] = None,
    on_date: Optional[date] = None,
) -> str:
    """
    Render an auto-code format string.

    Placeholders: ``{PREFIX}``, ``{YEAR}``, ``{MONTH}``, ``{DAY}``,
    ``{NUMBER}`` (zero padded) and ``{COMPANY_CODE}``. The result is upper-cased.
    """
    on_date = on_date or date.today()
    rendered = (
        fmt.replace("{PREFIX}", prefix or "")
        .replace("{YEAR}", f"{on_date.year:04d}")
        .replace("{MONTH}", f"{on_date.month:02d}")
        .replace("{DAY}", f"{on_date.day:02d}")
        .replace("{NUMBER}", str(number).zfill(padding))
        .replace("{COMPANY_CODE}", company_code or "")
    )
    return rendered.upper()


def is_unique_violation(exc: IntegrityError) -> bool:
    message = str(exc.orig if exc.orig is not None else exc).lower()
    return "unique" in message or "duplicate" in message


async def retry_on_unique_violation(
    db: AsyncSession,
    operation: Callable[[], Awaitable[T]],
    resource_type: str,
    attempts: int = 5,
) -> T:
    """
    Run ``operation`` inside a SAVEPOINT, retrying on unique violations.

    ``operation`` must compute its reference number afresh on every call and
    flush, so the constraint fires inside the savepoint. Integrity errors that
    are not uniqueness violations propagate untouched.
    """
    last_error: Optional[Exception] = None
    for attempt in range(1, attempts + 1):
        try:
            async with db.begin_nested():
                return await operation()
        except IntegrityError as exc:
            if not is_unique_violation(exc):
                raise
            last_error = exc
            logger.warning(
                f"Unique violation allocating {resource_type} reference "
                f"(attempt {attempt}/{attempts}); retrying"
            )
    raise ReferenceSequenceExhaustedException(resource_type, attempts) from last_error


__all__ = [
    "parse_trailing_number",
    "next_sequence",
    "format_journal_reference",
    "format_opening_balance_reference",
    "format_dated_reference",
    "company_code_for",
    "render_code_format",
    "is_unique_violation",
    "retry_on_unique_violation",
]
