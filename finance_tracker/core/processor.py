"""
Receipt import orchestration: recognize, extract, review, save.
"""

import datetime as dt
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from .utils import (sha1_file, to_money, money_fmt, parse_iso_date,
                    IMAGE_EXTS, PDF_EXTS, TRANSACTION_TYPES)
from .models import ReceiptScan, Transaction
from .ocr import extract_text, receipt_to_pdf, ReceiptProcessingError
from .parsers import extract_fields
from .database import init_db, add_transaction

# Order in which the reviewer is asked about each field
REVIEW_FIELDS = [
    ("amount", "Amount"),
    ("date", "Date (YYYY-MM-DD)"),
    ("category", "Category"),
    ("description", "Description"),
    ("type", "Type (income/expense)"),
]
REQUIRED_FIELDS = {"amount", "category"}


class ReceiptProcessor:
    """Turns receipt uploads into reviewed transactions."""

    def __init__(self, db_path: Path, receipts_dir: Path,
                 verbose: bool = False,
                 clock: Callable[[], dt.date] = dt.date.today):
        """
        Initialize receipt processor.

        Args:
            db_path: Path to the tracker database
            receipts_dir: Where confirmed receipts are archived as PDFs
            verbose: Whether to show verbose debugging output
            clock: Returns "today", used when a receipt has no date
        """
        self.db_path = db_path
        self.receipts_dir = receipts_dir
        self.verbose = verbose
        self.clock = clock

        init_db(self.db_path)

    def scan(self, path: Path) -> ReceiptScan:
        """
        Recognize a receipt file and propose transaction fields.

        Raises:
            ReceiptProcessingError: if the file cannot be turned into text
        """
        print(f"[INFO] Processing {path.name}")

        text = extract_text(path)
        sha1 = sha1_file(path)
        fields = extract_fields(text, clock=self.clock)

        if self.verbose:
            amount = fields.total_amount
            print(f"  [DEBUG] Amount: {money_fmt(amount) if amount is not None else '(none)'}")
            print(f"  [DEBUG] Date: {fields.transaction_date}")
            if amount is None:
                print(f"  [DEBUG] First 5 lines of OCR text:")
                for i, line in enumerate(text.splitlines()[:5], 1):
                    print(f"    {i}: {line[:80]}")

        if fields.total_amount is None:
            print(f"  [WARN] Could not extract amount. Check OCR quality.")

        return ReceiptScan(source_file=path.as_posix(), sha1=sha1,
                           raw_text=text, fields=fields)

    def scan_all(self, incoming_dir: Path) -> Tuple[List[ReceiptScan], List[Tuple[Path, str]]]:
        """
        Scan every supported file in a directory.

        Returns:
            Tuple of (scans, failures) where failures pairs a path with its error
        """
        files = sorted(p for p in incoming_dir.iterdir()
                       if p.suffix.lower() in IMAGE_EXTS.union(PDF_EXTS))
        print(f"[INFO] Found {len(files)} receipt file(s) in {incoming_dir}")

        scans = []
        failures = []
        for path in files:
            try:
                scans.append(self.scan(path))
            except ReceiptProcessingError as e:
                print(f"[ERROR] Failed to process {path.name}: {e}")
                failures.append((path, str(e)))
        return scans, failures

    def review(self, scan: ReceiptScan,
               category: Optional[str] = None,
               amount: Optional[str] = None,
               date: Optional[str] = None,
               description: Optional[str] = None,
               type: Optional[str] = None,
               prompt: Optional[Callable[[str], str]] = None) -> Dict:
        """
        Confirm the proposed fields.

        Explicit arguments override extracted values. With a prompt callable
        (e.g. input), every field is offered for confirmation and the
        required ones are asked for until given. Without a prompt, a missing
        amount or category raises ValueError, as does any value the store
        would reject.
        """
        fields = scan.fields
        values = {
            "amount": amount if amount is not None else fields.total_amount,
            "date": date or fields.transaction_date,
            "category": category if category is not None else fields.category,
            "description": description if description is not None else fields.description,
            "type": type or fields.type,
        }

        if prompt is not None:
            for key, label in REVIEW_FIELDS:
                current = values[key]
                shown = "" if current is None else current
                answer = prompt(f"{label} [{shown}]: ").strip()
                if answer:
                    values[key] = answer
                while key in REQUIRED_FIELDS and values[key] in (None, ""):
                    values[key] = prompt(f"{label} (required): ").strip()

        if values["amount"] in (None, ""):
            raise ValueError(f"No amount found in {Path(scan.source_file).name}; "
                             f"enter it with --amount")
        if not (values["category"] or "").strip():
            raise ValueError("Category is required; pass --category")
        if values["type"] not in TRANSACTION_TYPES:
            raise ValueError(f"Invalid transaction type: {values['type']!r} "
                             f"(must be one of: {', '.join(TRANSACTION_TYPES)})")

        # save() archives before inserting, so reject anything add_transaction would
        values["amount"] = to_money(values["amount"])
        if values["amount"] < 0:
            raise ValueError(f"Amount must not be negative: {values['amount']}")
        values["date"] = parse_iso_date(values["date"])
        return values

    def archive(self, scan: ReceiptScan) -> Optional[Path]:
        """Store the receipt as a PDF under receipts_dir; None on failure."""
        src = Path(scan.source_file)
        self.receipts_dir.mkdir(parents=True, exist_ok=True)
        dest = self.receipts_dir / (src.stem + ".pdf")
        if dest.exists():
            # Avoid overwrite by suffixing sha1
            dest = self.receipts_dir / f"{src.stem}_{scan.sha1[:8]}.pdf"
            if dest.exists():
                return dest
        try:
            return receipt_to_pdf(src, dest)
        except Exception as e:
            print(f"[WARN] Could not archive {src.name}: {e}")
            return None

    def save(self, scan: ReceiptScan, values: Dict) -> Transaction:
        """Archive the receipt and record the reviewed transaction."""
        archived = self.archive(scan)
        scan.archived_path = archived.as_posix() if archived else None

        transaction = add_transaction(
            self.db_path,
            type=values["type"],
            amount=values["amount"],
            category=values["category"],
            date=values["date"],
            description=values.get("description"),
            receipt_path=scan.archived_path,
        )
        print(f"[OK] Saved transaction #{transaction.id}: {transaction.date} | "
              f"{transaction.category} | {money_fmt(transaction.amount)}")
        return transaction
