"""
Aggregate views over stored transactions.
"""

from pathlib import Path
from typing import Dict, List, Optional

from .database import get_connection, build_filters
from .utils import to_money


def get_summary(db_path: Path, start_date: Optional[str] = None,
                end_date: Optional[str] = None) -> Dict:
    """Income and expense totals, counts and the resulting balance."""
    where, params = build_filters(start_date, end_date)
    with get_connection(db_path) as conn:
        cur = conn.cursor()
        cur.execute(f"""
            SELECT type, SUM(amount) AS total, COUNT(*) AS count
            FROM transactions{where}
            GROUP BY type
        """, params)
        rows = cur.fetchall()

    summary = {
        "income": to_money(0),
        "expenses": to_money(0),
        "income_count": 0,
        "expense_count": 0,
    }
    for row in rows:
        if row["type"] == "income":
            summary["income"] = to_money(row["total"])
            summary["income_count"] = row["count"]
        else:
            summary["expenses"] = to_money(row["total"])
            summary["expense_count"] = row["count"]

    summary["balance"] = summary["income"] - summary["expenses"]
    return summary


def get_by_category(db_path: Path, type: Optional[str] = None,
                    start_date: Optional[str] = None,
                    end_date: Optional[str] = None) -> List[Dict]:
    """Totals per category, largest first."""
    where, params = build_filters(start_date, end_date, type)
    with get_connection(db_path) as conn:
        cur = conn.cursor()
        cur.execute(f"""
            SELECT category, SUM(amount) AS total, COUNT(*) AS count
            FROM transactions{where}
            GROUP BY category
            ORDER BY total DESC, category ASC
        """, params)
        return [{"category": r["category"], "total": to_money(r["total"]), "count": r["count"]}
                for r in cur.fetchall()]


def get_by_date(db_path: Path, type: Optional[str] = None,
                start_date: Optional[str] = None,
                end_date: Optional[str] = None) -> List[Dict]:
    """Totals per calendar day, oldest first."""
    where, params = build_filters(start_date, end_date, type)
    with get_connection(db_path) as conn:
        cur = conn.cursor()
        cur.execute(f"""
            SELECT date, SUM(amount) AS total
            FROM transactions{where}
            GROUP BY date
            ORDER BY date ASC
        """, params)
        return [{"date": r["date"], "total": to_money(r["total"])} for r in cur.fetchall()]
