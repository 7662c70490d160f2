from decimal import Decimal
from pathlib import Path

import pytest

from finance_tracker.core.database import get_transaction
from finance_tracker.core.ocr import ReceiptProcessingError
from finance_tracker.core.processor import ReceiptProcessor

RECEIPT_TEXT = "CORNER CAFE\nMarch 9, 2024\nLatte $4.50\nMuffin $3.25\nTotal $7.75\n"


@pytest.fixture
def processor(tmp_path, clock):
    return ReceiptProcessor(db_path=tmp_path / "tracker.sqlite",
                            receipts_dir=tmp_path / "receipts",
                            clock=clock)


@pytest.fixture
def fake_ocr(monkeypatch):
    texts = {}

    def fake_extract_text(path):
        if path.name not in texts:
            raise ReceiptProcessingError(f"Could not read {path.name}")
        return texts[path.name]

    monkeypatch.setattr("finance_tracker.core.processor.extract_text", fake_extract_text)
    return texts


def test_scan_proposes_fields(processor, fake_ocr, make_receipt_image):
    path = make_receipt_image("cafe.png")
    fake_ocr["cafe.png"] = RECEIPT_TEXT

    scan = processor.scan(path)
    assert scan.raw_text == RECEIPT_TEXT
    assert len(scan.sha1) == 40
    assert scan.fields.total_amount == Decimal("7.75")
    assert scan.fields.transaction_date == "2024-03-09"
    assert scan.archived_path is None


def test_scan_without_amount_warns(processor, fake_ocr, make_receipt_image, capsys):
    path = make_receipt_image("blank.png")
    fake_ocr["blank.png"] = "smudged text"

    scan = processor.scan(path)
    assert scan.fields.total_amount is None
    assert scan.fields.transaction_date == "2025-01-15"
    assert "[WARN] Could not extract amount" in capsys.readouterr().out


def test_scan_propagates_processing_failure(processor, fake_ocr, make_receipt_image):
    path = make_receipt_image("unreadable.png")
    with pytest.raises(ReceiptProcessingError):
        processor.scan(path)


def test_review_applies_overrides(processor, fake_ocr, make_receipt_image):
    path = make_receipt_image("cafe.png")
    fake_ocr["cafe.png"] = RECEIPT_TEXT
    scan = processor.scan(path)

    values = processor.review(scan, category="Food & Dining", amount="8.00")
    assert values == {
        "amount": Decimal("8.00"),
        "date": "2024-03-09",
        "category": "Food & Dining",
        "description": "Imported from receipt",
        "type": "expense",
    }


def test_review_requires_amount_and_category(processor, fake_ocr, make_receipt_image):
    fake_ocr["blank.png"] = "smudged text"
    fake_ocr["cafe.png"] = RECEIPT_TEXT
    blank = processor.scan(make_receipt_image("blank.png"))
    cafe = processor.scan(make_receipt_image("cafe.png"))

    with pytest.raises(ValueError, match="No amount found"):
        processor.review(blank, category="Shopping")
    with pytest.raises(ValueError, match="Category is required"):
        processor.review(cafe)


def test_review_prompts_for_missing_values(processor, fake_ocr, make_receipt_image):
    fake_ocr["blank.png"] = "smudged text"
    scan = processor.scan(make_receipt_image("blank.png"))

    answers = iter([
        "",          # amount: nothing extracted, keep
        "9.99",      # amount (required)
        "",          # date: accept
        "",          # category: empty
        "Shopping",  # category (required)
        "Batteries",  # description
        "",          # type: accept
    ])
    prompts = []

    def prompt(message):
        prompts.append(message)
        return next(answers)

    values = processor.review(scan, prompt=prompt)
    assert values["amount"] == Decimal("9.99")
    assert values["category"] == "Shopping"
    assert values["description"] == "Batteries"
    assert values["date"] == "2025-01-15"
    assert values["type"] == "expense"
    assert prompts[0] == "Amount []: "
    assert prompts[1] == "Amount (required): "


def test_save_archives_receipt_and_records_transaction(processor, fake_ocr, make_receipt_image):
    fake_ocr["cafe.png"] = RECEIPT_TEXT
    scan = processor.scan(make_receipt_image("cafe.png"))
    values = processor.review(scan, category="Food & Dining")

    transaction = processor.save(scan, values)

    stored = get_transaction(processor.db_path, transaction.id)
    assert stored.amount == Decimal("7.75")
    assert stored.type == "expense"
    assert stored.description == "Imported from receipt"
    assert stored.receipt_path == scan.archived_path
    assert Path(stored.receipt_path).name == "cafe.pdf"
    assert Path(stored.receipt_path).exists()


def test_archive_avoids_overwriting(processor, fake_ocr, make_receipt_image, tmp_path):
    fake_ocr["cafe.png"] = RECEIPT_TEXT
    first = processor.scan(make_receipt_image("cafe.png"))
    processor.save(first, processor.review(first, category="Food & Dining"))

    other_dir = tmp_path / "other"
    other_dir.mkdir()
    from PIL import Image
    second_path = other_dir / "cafe.png"
    Image.new("RGB", (50, 50), color="black").save(second_path)
    second = processor.scan(second_path)
    processor.save(second, processor.review(second, category="Food & Dining"))

    assert Path(second.archived_path).name == f"cafe_{second.sha1[:8]}.pdf"
    assert first.archived_path != second.archived_path


def test_scan_all_collects_failures(processor, fake_ocr, make_receipt_image, tmp_path):
    fake_ocr["a.png"] = "Total $1.00"
    fake_ocr["b.png"] = "Total $2.00"
    make_receipt_image("a.png")
    make_receipt_image("b.png")
    make_receipt_image("c.png")
    (tmp_path / "notes.txt").write_text("ignored")

    scans, failures = processor.scan_all(tmp_path)

    assert [Path(s.source_file).name for s in scans] == ["a.png", "b.png"]
    assert [p.name for p, _ in failures] == ["c.png"]


def test_review_rejects_amount_too_large_for_cents(processor, fake_ocr, make_receipt_image):
    fake_ocr["huge.png"] = "Total $" + "9" * 30
    scan = processor.scan(make_receipt_image("huge.png"))

    with pytest.raises(ValueError, match="Invalid amount"):
        processor.review(scan, category="Shopping")


@pytest.mark.parametrize("overrides,message", [
    ({"date": "2024-13-01"}, "Invalid date"),
    ({"type": "refund"}, "Invalid transaction type"),
    ({"amount": "-5"}, "must not be negative"),
    ({"category": "   "}, "Category is required"),
])
def test_rejected_review_leaves_nothing_archived(processor, fake_ocr, make_receipt_image,
                                                 overrides, message):
    fake_ocr["cafe.png"] = RECEIPT_TEXT
    scan = processor.scan(make_receipt_image("cafe.png"))
    values = {"category": "Food & Dining", **overrides}

    with pytest.raises(ValueError, match=message):
        processor.review(scan, **values)

    assert not processor.receipts_dir.exists() or list(processor.receipts_dir.iterdir()) == []


def test_review_rejects_invalid_prompted_date(processor, fake_ocr, make_receipt_image):
    fake_ocr["cafe.png"] = RECEIPT_TEXT
    scan = processor.scan(make_receipt_image("cafe.png"))
    answers = iter(["", "2024-02-30", "Food & Dining", "", ""])

    with pytest.raises(ValueError, match="Invalid date"):
        processor.review(scan, prompt=lambda message: next(answers))
