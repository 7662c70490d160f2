"""
CSV and PDF exports.
"""

import csv
import calendar
import datetime as dt
from collections import defaultdict
from decimal import Decimal
from pathlib import Path
from typing import List, Dict, Optional

from .models import Transaction
from .utils import money_fmt

CSV_FIELDS = ["id", "date", "type", "category", "description", "amount", "receipt_path"]


def write_csv(transactions: List[Transaction], out_csv: Path):
    """Write transactions to CSV file."""
    with out_csv.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=CSV_FIELDS)
        w.writeheader()
        for t in transactions:
            row = t.to_dict()
            w.writerow({k: row.get(k) for k in CSV_FIELDS})


def _month_label(year_month: str) -> str:
    year, month = year_month.split("-")
    return f"{calendar.month_name[int(month)]} {year}"


def build_summary_pdf(transactions: List[Transaction], out_pdf: Path,
                      summary: Optional[Dict] = None,
                      title: str = "Personal Finance Summary") -> Path:
    """
    Build a summary PDF: totals, category totals, monthly totals, then
    line items grouped by month.

    Args:
        transactions: Transactions to include
        out_pdf: Output PDF path
        summary: Optional analytics summary (income/expenses/balance) for the header
        title: Report title
    """
    from reportlab.lib.pagesizes import letter
    from reportlab.pdfgen import canvas
    from reportlab.lib.units import inch

    # Group by month and compute totals
    monthly_data = defaultdict(list)
    monthly_totals = defaultdict(lambda: {"income": Decimal("0"), "expense": Decimal("0")})
    category_totals = defaultdict(Decimal)

    for t in transactions:
        year_month = t.date[:7]
        monthly_data[year_month].append(t)
        monthly_totals[year_month][t.type] += t.amount
        category_totals[(t.type, t.category)] += t.amount

    c = canvas.Canvas(out_pdf.as_posix(), pagesize=letter)
    width, height = letter

    def new_page():
        c.showPage()
        return height - 1 * inch

    y = height - 1 * inch
    c.setFont("Helvetica-Bold", 16)
    c.drawString(1 * inch, y, title)
    y -= 0.3 * inch
    c.setFont("Helvetica", 10)
    timestamp = dt.datetime.now().isoformat(timespec='seconds')
    c.drawString(1 * inch, y, f"Generated: {timestamp}")
    y -= 0.4 * inch

    if summary:
        c.setFont("Helvetica-Bold", 12)
        c.drawString(1 * inch, y, "Totals")
        y -= 0.25 * inch
        c.setFont("Helvetica", 10)
        c.drawString(1.1 * inch, y, f"Income: {money_fmt(summary['income'])} "
                                    f"({summary['income_count']} transactions)")
        y -= 0.2 * inch
        c.drawString(1.1 * inch, y, f"Expenses: {money_fmt(summary['expenses'])} "
                                    f"({summary['expense_count']} transactions)")
        y -= 0.2 * inch
        c.drawString(1.1 * inch, y, f"Balance: {money_fmt(summary['balance'])}")
        y -= 0.4 * inch

    # Category Totals
    c.setFont("Helvetica-Bold", 12)
    c.drawString(1 * inch, y, "Category Totals")
    y -= 0.25 * inch
    c.setFont("Helvetica", 10)
    for (kind, cat), amt in sorted(category_totals.items()):
        c.drawString(1.1 * inch, y, f"{cat} ({kind}): {money_fmt(amt)}")
        y -= 0.2 * inch
        if y < 1.2 * inch:
            y = new_page()
            c.setFont("Helvetica", 10)

    # Monthly breakdown
    y -= 0.2 * inch
    c.setFont("Helvetica-Bold", 12)
    c.drawString(1 * inch, y, "Monthly Totals")
    y -= 0.25 * inch
    c.setFont("Helvetica", 10)
    for year_month in sorted(monthly_data):
        totals = monthly_totals[year_month]
        c.drawString(1.1 * inch, y, f"{_month_label(year_month)}: "
                                    f"income {money_fmt(totals['income'])}, "
                                    f"expenses {money_fmt(totals['expense'])}")
        y -= 0.2 * inch
        if y < 1.2 * inch:
            y = new_page()
            c.setFont("Helvetica", 10)

    # Line items grouped by month
    for year_month in sorted(monthly_data):
        display = _month_label(year_month)
        month_rows = sorted(monthly_data[year_month], key=lambda t: (t.date, t.id))

        y = new_page()
        c.setFont("Helvetica-Bold", 14)
        c.drawString(1 * inch, y, display)
        y -= 0.5 * inch

        # Column headers
        c.setFont("Helvetica-Bold", 9)
        c.drawString(1.00 * inch, y, "Date")
        c.drawString(2.10 * inch, y, "Type")
        c.drawString(2.90 * inch, y, "Category")
        c.drawString(4.40 * inch, y, "Description")
        c.drawRightString(7.50 * inch, y, "Amount")
        y -= 0.15 * inch
        c.line(1.0 * inch, y, 7.6 * inch, y)
        y -= 0.15 * inch

        c.setFont("Helvetica", 9)
        for t in month_rows:
            c.drawString(1.00 * inch, y, t.date)
            c.drawString(2.10 * inch, y, t.type)
            c.drawString(2.90 * inch, y, t.category[:22])
            c.drawString(4.40 * inch, y, (t.description or "")[:30])
            c.drawRightString(7.50 * inch, y, money_fmt(t.amount))
            y -= 0.18 * inch

            if y < 0.8 * inch:
                y = new_page()
                c.setFont("Helvetica-Bold", 12)
                c.drawString(1 * inch, y, f"{display} (cont.)")
                y -= 0.3 * inch
                c.setFont("Helvetica", 9)

    c.showPage()
    c.save()
    return out_pdf


def merge_pdfs(summary_pdf: Path, receipt_pdfs: List[Path], out_pdf: Path) -> int:
    """
    Merge the summary and archived receipts into one PDF.

    Returns:
        Total page count of the merged PDF
    """
    from pypdf import PdfWriter, PdfReader

    writer = PdfWriter()
    writer.append(PdfReader(summary_pdf.as_posix()))

    for receipt_file in receipt_pdfs:
        try:
            writer.append(PdfReader(receipt_file.as_posix()))
        except Exception as e:
            print(f"[WARN] Skipping {receipt_file.name}: {e}")

    with out_pdf.open("wb") as f:
        writer.write(f)

    return len(writer.pages)
