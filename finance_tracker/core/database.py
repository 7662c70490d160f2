"""
Database operations for transaction storage.
"""

import math
import sqlite3
from pathlib import Path
from typing import List, Dict, Optional, Tuple

from .models import Transaction, Category
from .utils import TRANSACTION_TYPES, to_money, parse_iso_date

DEFAULT_CATEGORIES = [
    ("Food & Dining", "expense", "#ff6384"),
    ("Transportation", "expense", "#36a2eb"),
    ("Shopping", "expense", "#cc65fe"),
    ("Entertainment", "expense", "#ffce56"),
    ("Bills & Utilities", "expense", "#ff9f40"),
    ("Healthcare", "expense", "#4bc0c0"),
    ("Education", "expense", "#9966ff"),
    ("Travel", "expense", "#ff6384"),
    ("Salary", "income", "#4caf50"),
    ("Freelance", "income", "#8bc34a"),
    ("Investment", "income", "#cddc39"),
    ("Other Income", "income", "#ffeb3b"),
]

TRANSACTION_COLUMNS = "id, type, amount, category, description, date, receipt_path, created_at"
UPDATABLE_FIELDS = ("type", "amount", "category", "description", "date")


def init_db(db_path: Path):
    """Create tables if missing and seed the default categories."""
    with sqlite3.connect(db_path.as_posix()) as conn:
        cur = conn.cursor()
        cur.execute("""
        CREATE TABLE IF NOT EXISTS transactions (
            id INTEGER PRIMARY KEY,
            type TEXT NOT NULL CHECK (type IN ('income', 'expense')),
            amount REAL NOT NULL,
            category TEXT NOT NULL,
            description TEXT,
            date TEXT NOT NULL,
            receipt_path TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
        """)
        cur.execute("""
        CREATE INDEX IF NOT EXISTS idx_transactions_date
        ON transactions(date)
        """)
        cur.execute("""
        CREATE TABLE IF NOT EXISTS categories (
            id INTEGER PRIMARY KEY,
            name TEXT NOT NULL,
            type TEXT NOT NULL CHECK (type IN ('income', 'expense')),
            color TEXT DEFAULT '#007bff',
            UNIQUE(name, type)
        )
        """)
        cur.executemany("""
        INSERT OR IGNORE INTO categories (name, type, color) VALUES (?, ?, ?)
        """, DEFAULT_CATEGORIES)
        conn.commit()


def get_connection(db_path: Path) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path.as_posix())
    conn.row_factory = sqlite3.Row
    return conn


def _row_to_transaction(row: sqlite3.Row) -> Transaction:
    return Transaction(
        id=row["id"],
        type=row["type"],
        amount=to_money(row["amount"]),
        category=row["category"],
        description=row["description"],
        date=row["date"],
        receipt_path=row["receipt_path"],
        created_at=row["created_at"],
    )


def _validate(fields: Dict) -> Dict:
    """Validate and normalize transaction fields; raises ValueError."""
    clean = dict(fields)
    if "type" in clean and clean["type"] not in TRANSACTION_TYPES:
        raise ValueError(f"Invalid transaction type: {clean['type']!r} "
                         f"(must be one of: {', '.join(TRANSACTION_TYPES)})")
    if "amount" in clean:
        if clean["amount"] is None or clean["amount"] == "":
            raise ValueError("Amount is required")
        amount = to_money(clean["amount"])
        if amount < 0:
            raise ValueError(f"Amount must not be negative: {amount}")
        clean["amount"] = amount
    if "category" in clean:
        category = (clean["category"] or "").strip()
        if not category:
            raise ValueError("Category is required")
        clean["category"] = category
    if "date" in clean:
        clean["date"] = parse_iso_date(clean["date"])
    return clean


def build_filters(start_date: Optional[str] = None, end_date: Optional[str] = None,
             type: Optional[str] = None,
             category: Optional[str] = None) -> Tuple[str, List]:
    """Build the WHERE clause shared by listing and analytics queries."""
    clauses = []
    params = []
    if start_date:
        clauses.append("date >= ?")
        params.append(parse_iso_date(start_date))
    if end_date:
        clauses.append("date <= ?")
        params.append(parse_iso_date(end_date))
    if type:
        clauses.append("type = ?")
        params.append(type)
    if category:
        clauses.append("category = ?")
        params.append(category)
    where = (" WHERE " + " AND ".join(clauses)) if clauses else ""
    return where, params


def add_transaction(db_path: Path, type: str, amount, category: str, date: str,
                    description: Optional[str] = None,
                    receipt_path: Optional[str] = None) -> Transaction:
    """Insert a transaction and return it as stored."""
    clean = _validate({"type": type, "amount": amount, "category": category, "date": date})

    with get_connection(db_path) as conn:
        cur = conn.cursor()
        cur.execute("""
            INSERT INTO transactions (type, amount, category, description, date, receipt_path)
            VALUES (?, ?, ?, ?, ?, ?)
        """, (clean["type"], str(clean["amount"]), clean["category"], description,
              clean["date"], receipt_path))
        conn.commit()
        new_id = cur.lastrowid

    return get_transaction(db_path, new_id)


def get_transaction(db_path: Path, transaction_id: int) -> Optional[Transaction]:
    """Fetch one transaction by id."""
    with get_connection(db_path) as conn:
        cur = conn.cursor()
        cur.execute(f"SELECT {TRANSACTION_COLUMNS} FROM transactions WHERE id = ?",
                    (transaction_id,))
        row = cur.fetchone()
    return _row_to_transaction(row) if row else None


def list_transactions(db_path: Path, page: int = 1, limit: int = 10,
                      start_date: Optional[str] = None,
                      end_date: Optional[str] = None,
                      type: Optional[str] = None,
                      category: Optional[str] = None) -> Tuple[List[Transaction], Dict]:
    """
    List transactions newest first, one page at a time.

    Args:
        db_path: Path to tracker database
        page: 1-based page number
        limit: Page size
        start_date: Inclusive lower bound (YYYY-MM-DD)
        end_date: Inclusive upper bound (YYYY-MM-DD)
        type: "income" or "expense"
        category: Exact category name

    Returns:
        Tuple of (transactions, pagination) where pagination has
        page, limit, total and total_pages
    """
    page = int(page)
    limit = int(limit)
    if page < 1 or limit < 1:
        raise ValueError("page and limit must be positive")

    where, params = build_filters(start_date, end_date, type, category)
    offset = (page - 1) * limit

    with get_connection(db_path) as conn:
        cur = conn.cursor()
        cur.execute(f"""
            SELECT {TRANSACTION_COLUMNS} FROM transactions{where}
            ORDER BY date DESC, id DESC
            LIMIT ? OFFSET ?
        """, params + [limit, offset])
        transactions = [_row_to_transaction(r) for r in cur.fetchall()]

        cur.execute(f"SELECT COUNT(*) FROM transactions{where}", params)
        total = cur.fetchone()[0]

    pagination = {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": math.ceil(total / limit),
    }
    return transactions, pagination


def get_all_transactions(db_path: Path, start_date: Optional[str] = None,
                          end_date: Optional[str] = None) -> List[Transaction]:
    """All transactions in date order, for exports."""
    where, params = build_filters(start_date, end_date)
    with get_connection(db_path) as conn:
        cur = conn.cursor()
        cur.execute(f"""
            SELECT {TRANSACTION_COLUMNS} FROM transactions{where}
            ORDER BY date ASC, id ASC
        """, params)
        return [_row_to_transaction(r) for r in cur.fetchall()]


def update_transaction(db_path: Path, transaction_id: int, **fields) -> bool:
    """
    Update the given fields of a transaction.

    Returns:
        False if no transaction has that id
    """
    unknown = set(fields) - set(UPDATABLE_FIELDS)
    if unknown:
        raise ValueError(f"Cannot update field(s): {', '.join(sorted(unknown))}")

    clean = _validate({k: v for k, v in fields.items() if v is not None})
    if "amount" in clean:
        clean["amount"] = str(clean["amount"])
    if not clean:
        return get_transaction(db_path, transaction_id) is not None

    assignments = ", ".join(f"{k} = ?" for k in clean)
    with get_connection(db_path) as conn:
        cur = conn.cursor()
        cur.execute(f"UPDATE transactions SET {assignments} WHERE id = ?",
                    list(clean.values()) + [transaction_id])
        conn.commit()
        return cur.rowcount > 0


def delete_transaction(db_path: Path, transaction_id: int) -> bool:
    """Delete a transaction; False if it did not exist."""
    with get_connection(db_path) as conn:
        cur = conn.cursor()
        cur.execute("DELETE FROM transactions WHERE id = ?", (transaction_id,))
        conn.commit()
        return cur.rowcount > 0


def get_categories(db_path: Path, type: Optional[str] = None) -> List[Category]:
    """List categories ordered by name, optionally for one transaction type."""
    with get_connection(db_path) as conn:
        cur = conn.cursor()
        if type:
            cur.execute("SELECT name, type, color FROM categories WHERE type = ? ORDER BY name",
                        (type,))
        else:
            cur.execute("SELECT name, type, color FROM categories ORDER BY name, type")
        return [Category(name=r["name"], type=r["type"], color=r["color"])
                for r in cur.fetchall()]
