import pytest

from finance_tracker.cli.main import main
from finance_tracker.core.database import get_all_transactions


@pytest.fixture
def run(tmp_path):
    db = tmp_path / "cli.sqlite"

    def _run(*argv):
        return main(["--db", str(db), *argv])

    _run.db = db
    return _run


def test_add_list_and_summary(run, capsys):
    assert run("add", "--type", "income", "--amount", "2500", "--category", "Salary",
               "--date", "2024-03-01") == 0
    assert run("add", "--type", "expense", "--amount", "12.50", "--category", "Food & Dining",
               "--date", "2024-03-02", "--description", "Lunch") == 0
    capsys.readouterr()

    assert run("list", "--type", "expense") == 0
    out = capsys.readouterr().out
    assert "Lunch" in out
    assert "$12.50" in out
    assert "Page 1 of 1 (1 transaction(s))" in out

    assert run("summary") == 0
    out = capsys.readouterr().out
    assert "$2,500.00" in out
    assert "$2,487.50" in out
    assert "Food & Dining" in out


def test_add_uses_env_database(tmp_path, monkeypatch):
    db = tmp_path / "env.sqlite"
    monkeypatch.setenv("FINANCE_TRACKER_DB", str(db))
    assert main(["add", "--type", "expense", "--amount", "3", "--category", "Shopping",
                 "--date", "2024-01-01"]) == 0
    assert len(get_all_transactions(db)) == 1


def test_invalid_input_reports_error(run, capsys):
    assert run("add", "--type", "expense", "--amount", "lots", "--category", "Shopping") == 1
    assert "[ERROR] Invalid amount" in capsys.readouterr().out


def test_update_and_delete(run, capsys):
    run("add", "--type", "expense", "--amount", "5", "--category", "Shopping",
        "--date", "2024-01-01")
    transaction_id = get_all_transactions(run.db)[0].id

    assert run("update", str(transaction_id), "--amount", "6.5") == 0
    assert get_all_transactions(run.db)[0].amount == 6.5

    assert run("delete", str(transaction_id)) == 0
    assert run("delete", str(transaction_id)) == 1
    assert "[ERROR] Not found" in capsys.readouterr().out
    assert run("update", "999", "--amount", "1") == 1


def test_categories(run, capsys):
    assert run("categories", "--type", "income") == 0
    out = capsys.readouterr().out
    assert "Salary" in out
    assert "Healthcare" not in out


def test_scan_saves_receipt(run, tmp_path, monkeypatch, make_receipt_image, capsys):
    monkeypatch.setattr("finance_tracker.core.processor.extract_text",
                        lambda path: "Receipt date: April 5, 2024\nTOTAL $50.00")
    receipt = make_receipt_image("store.png")

    assert run("scan", str(receipt), "--category", "Shopping", "--yes",
               "--receipts", str(tmp_path / "archive")) == 0

    [transaction] = get_all_transactions(run.db)
    assert transaction.date == "2024-04-05"
    assert transaction.amount == 50
    assert transaction.category == "Shopping"
    assert transaction.receipt_path.endswith("store.pdf")
    assert "[OK] Saved transaction" in capsys.readouterr().out


def test_scan_without_amount_fails_non_interactively(run, tmp_path, monkeypatch,
                                                     make_receipt_image, capsys):
    monkeypatch.setattr("finance_tracker.core.processor.extract_text", lambda path: "blurry")
    receipt = make_receipt_image("blurry.png")

    assert run("scan", str(receipt), "--category", "Shopping", "--yes",
               "--receipts", str(tmp_path / "archive")) == 1
    assert "No amount found" in capsys.readouterr().out
    assert get_all_transactions(run.db) == []


def test_scan_reports_unsupported_file(run, tmp_path, capsys):
    doc = tmp_path / "receipt.txt"
    doc.write_text("Total $5.00")
    assert run("scan", str(doc), "--yes", "--receipts", str(tmp_path / "archive")) == 1
    assert "[ERROR] Failed to process receipt.txt" in capsys.readouterr().out


def test_export(run, tmp_path, monkeypatch, make_receipt_image):
    monkeypatch.setattr("finance_tracker.core.processor.extract_text",
                        lambda path: "Total $20.00")
    run("scan", str(make_receipt_image("a.png")), "--category", "Shopping", "--yes",
        "--receipts", str(tmp_path / "archive"))
    run("add", "--type", "income", "--amount", "100", "--category", "Salary",
        "--date", "2024-01-01")

    out_dir = tmp_path / "reports"
    assert run("export", "--out", str(out_dir), "--with-receipts") == 0
    assert (out_dir / "transactions.csv").exists()
    assert (out_dir / "summary.pdf").exists()
    assert (out_dir / "receipts_package.pdf").exists()


def test_add_rejects_amount_too_large_for_cents(run, capsys):
    assert run("add", "--type", "expense", "--amount", "1" + "0" * 30,
               "--category", "Shopping", "--date", "2024-01-01") == 1
    assert "[ERROR] Invalid amount" in capsys.readouterr().out
    assert get_all_transactions(run.db) == []


def test_scan_oversized_total_does_not_stop_batch(run, tmp_path, monkeypatch,
                                                  make_receipt_image, capsys):
    texts = {"huge.png": "Total $" + "9" * 30, "ok.png": "Total $4.00"}
    monkeypatch.setattr("finance_tracker.core.processor.extract_text",
                        lambda path: texts[path.name])
    huge = make_receipt_image("huge.png")
    ok = make_receipt_image("ok.png")

    assert run("scan", str(huge), str(ok), "--category", "Shopping", "--yes",
               "--receipts", str(tmp_path / "archive")) == 1

    assert "[ERROR] huge.png: Invalid amount" in capsys.readouterr().out
    [transaction] = get_all_transactions(run.db)
    assert transaction.amount == 4
    assert not (tmp_path / "archive" / "huge.pdf").exists()


def test_summary_by_date(run, capsys):
    run("add", "--type", "expense", "--amount", "3", "--category", "Shopping",
        "--date", "2024-02-01")
    run("add", "--type", "expense", "--amount", "4", "--category", "Travel",
        "--date", "2024-02-01")
    run("add", "--type", "expense", "--amount", "5", "--category", "Shopping",
        "--date", "2024-02-03")
    capsys.readouterr()

    assert run("summary") == 0
    assert "Expenses by date" not in capsys.readouterr().out

    assert run("summary", "--by-date") == 0
    out = capsys.readouterr().out
    assert "Expenses by date:" in out
    by_date = out.split("Expenses by date:")[1]
    assert by_date.index("2024-02-01") < by_date.index("2024-02-03")
    assert "$7.00" in by_date
