"""
Parsers for extracting transaction fields from receipt text.

The heuristic is deliberately simple and explainable:

- amount: the first dollar value on the first "total"-like line, otherwise
  the sum of every dollar value in the text, otherwise nothing
- date: the first "Month D, YYYY" in the text, otherwise today
- type/description/category: fixed, left for the reviewer to complete

None of these functions raise on malformed input.
"""

import datetime as dt
from decimal import Decimal
from typing import Callable, List, Optional

from .models import ExtractedFields
from .utils import (DOLLAR_AMOUNT_PATTERN, TOTAL_LABEL_PATTERN, MONTH_DATE_PATTERN,
                    MONTHS, RECEIPT_DESCRIPTION, normalize_amount)


def parse_amounts(text: str) -> List[Decimal]:
    """Collect every "$"-prefixed value in the text, in order of appearance."""
    amounts = []
    for m in DOLLAR_AMOUNT_PATTERN.finditer(text):
        val = normalize_amount(m.group(1))
        if val is not None:
            amounts.append(val)
    return amounts


def parse_labeled_total(text: str) -> Optional[Decimal]:
    """
    Return the first dollar value on the first line carrying a total label.

    Only the first labeled line is considered: if it has no usable dollar
    value, the result is None even when later lines are labeled too.
    """
    for line in text.split("\n"):
        if TOTAL_LABEL_PATTERN.search(line):
            m = DOLLAR_AMOUNT_PATTERN.search(line)
            if m:
                return normalize_amount(m.group(1))
            return None
    return None


def parse_total_amount(text: str) -> Optional[Decimal]:
    """
    Resolve the receipt total.

    Falls back to summing all dollar values when no labeled total exists.
    This over-counts receipts that list tax or a subtotal as separate dollar
    amounts; that trade-off is accepted.

    A labeled total of $0.00 is a value and is returned as-is; only a
    labeled line without a usable amount falls through to the sum.
    """
    amounts = parse_amounts(text)

    total = parse_labeled_total(text)
    if total is None and amounts:
        total = sum(amounts, Decimal("0"))

    return total


def parse_date(text: str) -> Optional[str]:
    """Extract a "April 5, 2024"-style date as YYYY-MM-DD, or None."""
    m = MONTH_DATE_PATTERN.search(text)
    if not m:
        return None
    month = MONTHS[m.group(1).lower()]
    try:
        return dt.date(int(m.group(3)), month, int(m.group(2))).isoformat()
    except ValueError:
        # e.g. "February 30, 2024"
        return None


def extract_fields(raw_text: str,
                   clock: Callable[[], dt.date] = dt.date.today) -> ExtractedFields:
    """
    Build candidate transaction fields from raw OCR/PDF text.

    Args:
        raw_text: Text recognized from an uploaded receipt (may be empty)
        clock: Returns "today"; used when the text holds no usable date

    Returns:
        Fully populated ExtractedFields
    """
    raw_text = raw_text or ""
    date = parse_date(raw_text) or clock().isoformat()

    return ExtractedFields(
        transaction_date=date,
        total_amount=parse_total_amount(raw_text),
        category="",
        description=RECEIPT_DESCRIPTION,
        type="expense",
    )
