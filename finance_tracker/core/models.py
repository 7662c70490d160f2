"""
Data models for transactions and receipt imports.
"""

from dataclasses import dataclass, asdict
from decimal import Decimal
from typing import Optional

from .utils import RECEIPT_DESCRIPTION


@dataclass
class ExtractedFields:
    """Best-guess transaction fields proposed from receipt text."""
    transaction_date: str
    total_amount: Optional[Decimal] = None
    category: str = ""
    description: str = RECEIPT_DESCRIPTION
    type: str = "expense"

    def to_dict(self):
        """Convert to dictionary."""
        return asdict(self)


@dataclass
class Transaction:
    """A stored income or expense record."""
    id: int
    type: str
    amount: Decimal
    category: str
    date: str
    description: Optional[str] = None
    receipt_path: Optional[str] = None
    created_at: Optional[str] = None

    def to_dict(self):
        """Convert to dictionary."""
        return asdict(self)


@dataclass
class Category:
    name: str
    type: str
    color: str = "#007bff"


@dataclass
class ReceiptScan:
    """Outcome of running one uploaded receipt through text extraction."""
    source_file: str
    sha1: str
    raw_text: str
    fields: ExtractedFields
    archived_path: Optional[str] = None
