"""
Utility functions and constants for the finance tracker.
"""

import calendar
import datetime as dt
import hashlib
import re
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional, Union

# File type constants
IMAGE_EXTS = {".png", ".jpg", ".jpeg", ".tif", ".tiff", ".bmp", ".webp"}
PDF_EXTS = {".pdf"}

TRANSACTION_TYPES = ("income", "expense")
RECEIPT_DESCRIPTION = "Imported from receipt"

# Pattern constants for parsing
DOLLAR_AMOUNT_PATTERN = re.compile(r"\$([\d,.]+)")

TOTAL_LABEL_PATTERN = re.compile(
    r"total|amount due|balance due|grand total|amount payable",
    re.IGNORECASE,
)

# Full month names plus their three-letter abbreviations (and "Sept")
MONTHS = {name.lower(): i for i, name in enumerate(calendar.month_name) if name}
MONTHS.update({abbr.lower(): i for i, abbr in enumerate(calendar.month_abbr) if abbr})
MONTHS["sept"] = 9

MONTH_DATE_PATTERN = re.compile(
    r"\b(" + "|".join(sorted(MONTHS, key=len, reverse=True)) + r") (\d{1,2}), (\d{4})\b",
    re.IGNORECASE,
)

CENTS = Decimal("0.01")

# Uploads larger than this are rejected before OCR
MAX_UPLOAD_BYTES = 5 * 1024 * 1024


def normalize_amount(s: str) -> Optional[Decimal]:
    """Normalize a currency token ("1,234.56") to a Decimal, or None if malformed."""
    if not s:
        return None
    s = s.replace(",", "").strip()
    try:
        value = Decimal(s)
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value


def to_money(value: Union[Decimal, float, int, str, None]) -> Optional[Decimal]:
    """Coerce a stored or user-supplied amount to a two-place Decimal."""
    if value is None:
        return None
    try:
        amount = Decimal(str(value).replace(",", "").strip())
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {value!r}")
    if not amount.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")
    try:
        return amount.quantize(CENTS)
    except InvalidOperation:
        # more digits than the decimal context can hold at cent precision
        raise ValueError(f"Invalid amount: {value!r}")


def parse_iso_date(s: str) -> str:
    """Validate a YYYY-MM-DD string and return it unchanged."""
    try:
        return dt.date.fromisoformat(s).isoformat()
    except (TypeError, ValueError):
        raise ValueError(f"Invalid date (expected YYYY-MM-DD): {s!r}")


def sha1_file(path: Path) -> str:
    """Calculate SHA1 hash of file."""
    h = hashlib.sha1()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(65536), b""):
            h.update(chunk)
    return h.hexdigest()


def money_fmt(v: Optional[Decimal]) -> str:
    """Format amount as currency."""
    return f"${v:,.2f}" if v is not None else ""
