import datetime as dt

import pytest

from finance_tracker.core.database import init_db

FIXED_TODAY = dt.date(2025, 1, 15)


@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "tracker.sqlite"
    init_db(path)
    return path


@pytest.fixture
def clock():
    return lambda: FIXED_TODAY


@pytest.fixture
def make_receipt_image(tmp_path):
    """Write a small PNG to tmp_path and return its path."""
    from PIL import Image

    def _make(name="receipt.png", color="white"):
        path = tmp_path / name
        Image.new("RGB", (120, 200), color=color).save(path)
        return path

    return _make


@pytest.fixture
def make_text_pdf(tmp_path):
    """Write a one-page PDF with the given lines of text."""
    from reportlab.lib.pagesizes import letter
    from reportlab.pdfgen import canvas

    def _make(name, lines):
        path = tmp_path / name
        c = canvas.Canvas(path.as_posix(), pagesize=letter)
        y = 700
        for line in lines:
            c.drawString(72, y, line)
            y -= 16
        c.showPage()
        c.save()
        return path

    return _make
