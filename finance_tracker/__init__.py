"""
Finance Tracker

A local personal finance tracker: record income and expenses, view
aggregated analytics, and import expenses from scanned receipts.
"""

__version__ = "1.0.0"
__author__ = "Finance Tracker Contributors"

from finance_tracker.core.models import ExtractedFields, Transaction
from finance_tracker.core.parsers import extract_fields

__all__ = ["ExtractedFields", "Transaction", "extract_fields"]
