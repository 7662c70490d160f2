#!/usr/bin/env python3
"""
Main CLI entrypoint for the finance tracker.
"""

import argparse
import datetime as dt
import os
import sys
from pathlib import Path

from finance_tracker.core.utils import money_fmt, TRANSACTION_TYPES
from finance_tracker.core.ocr import ReceiptProcessingError
from finance_tracker.core.processor import ReceiptProcessor
from finance_tracker.core.database import (init_db, add_transaction, list_transactions,
                                           update_transaction, delete_transaction,
                                           get_categories, get_all_transactions)
from finance_tracker.core.analytics import get_summary, get_by_category, get_by_date
from finance_tracker.core.reporting import write_csv, build_summary_pdf, merge_pdfs

DEFAULT_DB = "./finance_tracker.sqlite"
DEFAULT_RECEIPTS = "./receipts"


def _print_transaction(t):
    print(f"  #{t.id:<5} {t.date}  {t.type:<7}  {t.category[:22]:<22}  "
          f"{money_fmt(t.amount):>12}  {t.description or ''}")


def cmd_scan(args) -> int:
    processor = ReceiptProcessor(
        db_path=args.db,
        receipts_dir=Path(args.receipts),
        verbose=args.verbose,
    )
    interactive = not args.yes and sys.stdin.isatty()
    prompt = input if interactive else None

    scans = []
    failed = 0
    for name in args.files:
        path = Path(name)
        if path.is_dir():
            dir_scans, failures = processor.scan_all(path)
            scans.extend(dir_scans)
            failed += len(failures)
            continue
        try:
            scans.append(processor.scan(path))
        except ReceiptProcessingError as e:
            print(f"[ERROR] Failed to process {path.name}: {e}")
            failed += 1

    for scan in scans:
        if interactive:
            print(f"\n--- {Path(scan.source_file).name} ---")
        try:
            values = processor.review(
                scan,
                category=args.category,
                amount=args.amount,
                date=args.date,
                description=args.description,
                type=args.type,
                prompt=prompt,
            )
            processor.save(scan, values)
        except ValueError as e:
            print(f"[ERROR] {Path(scan.source_file).name}: {e}")
            failed += 1

    return 1 if failed else 0


def cmd_add(args) -> int:
    t = add_transaction(args.db, type=args.type, amount=args.amount,
                        category=args.category, date=args.date or dt.date.today().isoformat(),
                        description=args.description)
    print(f"[OK] Added transaction #{t.id}")
    _print_transaction(t)
    return 0


def cmd_list(args) -> int:
    transactions, pagination = list_transactions(
        args.db, page=args.page, limit=args.limit,
        start_date=args.start_date, end_date=args.end_date,
        type=args.type, category=args.category,
    )
    if not transactions:
        print("No transactions found.")
    for t in transactions:
        _print_transaction(t)
    print(f"[INFO] Page {pagination['page']} of {pagination['total_pages']} "
          f"({pagination['total']} transaction(s))")
    return 0


def cmd_update(args) -> int:
    found = update_transaction(args.db, args.id, type=args.type, amount=args.amount,
                               category=args.category, date=args.date,
                               description=args.description)
    if not found:
        print(f"[ERROR] Not found: transaction #{args.id}")
        return 1
    print(f"[OK] Transaction #{args.id} updated")
    return 0


def cmd_delete(args) -> int:
    if not delete_transaction(args.db, args.id):
        print(f"[ERROR] Not found: transaction #{args.id}")
        return 1
    print(f"[OK] Transaction #{args.id} deleted")
    return 0


def cmd_categories(args) -> int:
    for cat in get_categories(args.db, type=args.type):
        print(f"  {cat.name:<22} {cat.type:<7} {cat.color}")
    return 0


def cmd_summary(args) -> int:
    summary = get_summary(args.db, start_date=args.start_date, end_date=args.end_date)
    print(f"Income:   {money_fmt(summary['income']):>12}  ({summary['income_count']})")
    print(f"Expenses: {money_fmt(summary['expenses']):>12}  ({summary['expense_count']})")
    print(f"Balance:  {money_fmt(summary['balance']):>12}")

    by_category = get_by_category(args.db, type="expense",
                                  start_date=args.start_date, end_date=args.end_date)
    if by_category:
        print("\nExpenses by category:")
        for row in by_category:
            print(f"  {row['category']:<22} {money_fmt(row['total']):>12}  ({row['count']})")

    if args.by_date:
        by_date = get_by_date(args.db, type="expense",
                              start_date=args.start_date, end_date=args.end_date)
        if by_date:
            print("\nExpenses by date:")
            for row in by_date:
                print(f"  {row['date']:<22} {money_fmt(row['total']):>12}")
    return 0


def cmd_export(args) -> int:
    out_dir = Path(args.out)
    out_dir.mkdir(parents=True, exist_ok=True)

    transactions = get_all_transactions(args.db, start_date=args.start_date,
                                        end_date=args.end_date)
    if not transactions:
        print("No transactions to export.")
        return 0

    out_csv = out_dir / "transactions.csv"
    write_csv(transactions, out_csv)
    print(f"[OK] Wrote {out_csv}")

    summary = get_summary(args.db, start_date=args.start_date, end_date=args.end_date)
    summary_pdf = out_dir / "summary.pdf"
    build_summary_pdf(transactions, summary_pdf, summary=summary)
    print(f"[OK] Wrote {summary_pdf}")

    if args.with_receipts:
        receipts = [Path(t.receipt_path) for t in transactions
                    if t.receipt_path and Path(t.receipt_path).exists()]
        package_pdf = out_dir / "receipts_package.pdf"
        pages = merge_pdfs(summary_pdf, receipts, package_pdf)
        print(f"[OK] Wrote {package_pdf} ({len(receipts)} receipt(s), {pages} page(s))")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="finance-tracker",
        description="Track income and expenses, and import expenses from receipts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Import a receipt (review each field interactively)
  finance-tracker scan ./receipt.jpg

  # Import a folder of receipts without prompting
  finance-tracker scan ./incoming --category "Food & Dining" --yes

  # Record a salary payment
  finance-tracker add --type income --amount 2500 --category Salary

  # Page through March expenses
  finance-tracker list --type expense --start-date 2024-03-01 --end-date 2024-03-31
        """
    )
    parser.add_argument("--db",
                        help=f"SQLite database file (default: FINANCE_TRACKER_DB env or {DEFAULT_DB})")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("scan", help="Import expenses from receipt images or PDFs")
    p.add_argument("files", nargs="+", help="Receipt files or folders of receipts")
    p.add_argument("--receipts",
                   default=os.getenv("FINANCE_TRACKER_RECEIPTS", DEFAULT_RECEIPTS),
                   help=f"Folder for archived receipts (default: FINANCE_TRACKER_RECEIPTS env or {DEFAULT_RECEIPTS})")
    p.add_argument("--category", help="Category to use instead of asking")
    p.add_argument("--amount", help="Amount to use instead of the extracted total")
    p.add_argument("--date", help="Date (YYYY-MM-DD) to use instead of the extracted date")
    p.add_argument("--description", help="Description to use instead of the default")
    p.add_argument("--type", choices=TRANSACTION_TYPES, help="Transaction type (default: expense)")
    p.add_argument("--yes", "-y", action="store_true",
                   help="Accept extracted values without prompting")
    p.add_argument("--verbose", "-v", action="store_true",
                   help="Show detailed parsing information for debugging")
    p.set_defaults(func=cmd_scan)

    p = sub.add_parser("add", help="Record a transaction")
    p.add_argument("--type", choices=TRANSACTION_TYPES, required=True)
    p.add_argument("--amount", required=True)
    p.add_argument("--category", required=True)
    p.add_argument("--date", help="YYYY-MM-DD (default: today)")
    p.add_argument("--description")
    p.set_defaults(func=cmd_add)

    p = sub.add_parser("list", help="List transactions, newest first")
    p.add_argument("--page", type=int, default=1)
    p.add_argument("--limit", type=int, default=10)
    p.add_argument("--start-date")
    p.add_argument("--end-date")
    p.add_argument("--type", choices=TRANSACTION_TYPES)
    p.add_argument("--category")
    p.set_defaults(func=cmd_list)

    p = sub.add_parser("update", help="Change fields of a transaction")
    p.add_argument("id", type=int)
    p.add_argument("--type", choices=TRANSACTION_TYPES)
    p.add_argument("--amount")
    p.add_argument("--category")
    p.add_argument("--date")
    p.add_argument("--description")
    p.set_defaults(func=cmd_update)

    p = sub.add_parser("delete", help="Delete a transaction")
    p.add_argument("id", type=int)
    p.set_defaults(func=cmd_delete)

    p = sub.add_parser("categories", help="List categories")
    p.add_argument("--type", choices=TRANSACTION_TYPES)
    p.set_defaults(func=cmd_categories)

    p = sub.add_parser("summary", help="Show income, expenses and balance")
    p.add_argument("--start-date")
    p.add_argument("--end-date")
    p.add_argument("--by-date", action="store_true",
                   help="Also show expense totals per day")
    p.set_defaults(func=cmd_summary)

    p = sub.add_parser("export", help="Write CSV and PDF reports")
    p.add_argument("--out", default="./reports", help="Output folder (default: ./reports)")
    p.add_argument("--start-date")
    p.add_argument("--end-date")
    p.add_argument("--with-receipts", action="store_true",
                   help="Also bundle the summary with archived receipt PDFs")
    p.set_defaults(func=cmd_export)

    return parser


def main(argv=None):
    """Main CLI entrypoint."""
    parser = build_parser()
    args = parser.parse_args(argv)

    args.db = Path(args.db or os.getenv("FINANCE_TRACKER_DB", DEFAULT_DB))
    init_db(args.db)

    try:
        return args.func(args)
    except ValueError as e:
        print(f"[ERROR] {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
