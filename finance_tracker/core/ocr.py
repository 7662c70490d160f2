"""
Text recognition for uploaded receipt images and PDFs.
"""

import io
import shutil
from pathlib import Path

from .utils import IMAGE_EXTS, PDF_EXTS, MAX_UPLOAD_BYTES


class ReceiptProcessingError(Exception):
    """Raised when an upload cannot be turned into text."""


def _lazy_import_ocr_deps():
    """Lazy import heavy OCR dependencies."""
    global pytesseract, PIL_Image, fitz
    import importlib
    pytesseract = importlib.import_module("pytesseract")
    PIL_Image = importlib.import_module("PIL.Image")
    fitz = importlib.import_module("fitz")  # pymupdf


# Initialize on first use
pytesseract = None
PIL_Image = None
fitz = None


def _image_to_text(img) -> str:
    # Improve OCR: convert to grayscale
    if img.mode != "L":
        img = img.convert("L")
    return pytesseract.image_to_string(img)


def ocr_image_to_text(img_path: Path) -> str:
    """OCR an image file to text."""
    if pytesseract is None:
        _lazy_import_ocr_deps()

    with PIL_Image.open(img_path) as img:
        return _image_to_text(img)


def pdf_to_text(pdf_path: Path) -> str:
    """
    Extract text from a PDF using PyMuPDF.

    Scanned PDFs without a text layer are rasterized page by page and run
    through Tesseract instead.
    """
    if fitz is None:
        _lazy_import_ocr_deps()

    doc = fitz.open(pdf_path.as_posix())
    try:
        chunks = [page.get_text() for page in doc]
        if any(chunk.strip() for chunk in chunks):
            return "\n".join(chunks)

        chunks = []
        mat = fitz.Matrix(2, 2)
        for page in doc:
            pix = page.get_pixmap(matrix=mat, alpha=False)
            with PIL_Image.open(io.BytesIO(pix.tobytes("png"))) as img:
                chunks.append(_image_to_text(img))
        return "\n".join(chunks)
    finally:
        doc.close()


def extract_text(path: Path) -> str:
    """
    Recognize the text of a receipt file (image or PDF).

    Raises:
        ReceiptProcessingError: unsupported type, oversized or unreadable file,
            OCR engine failure
    """
    ext = path.suffix.lower()
    if ext not in IMAGE_EXTS and ext not in PDF_EXTS:
        raise ReceiptProcessingError(f"Unsupported file type: {path.name}")
    if not path.is_file():
        raise ReceiptProcessingError(f"File not found: {path}")
    size = path.stat().st_size
    if size > MAX_UPLOAD_BYTES:
        raise ReceiptProcessingError(
            f"File too large: {path.name} ({size} bytes; "
            f"limit {MAX_UPLOAD_BYTES // (1024 * 1024)} MB)")

    try:
        if ext in IMAGE_EXTS:
            return ocr_image_to_text(path)
        return pdf_to_text(path)
    except ReceiptProcessingError:
        raise
    except Exception as e:
        raise ReceiptProcessingError(f"Could not read {path.name}: {e}") from e


def receipt_to_pdf(src: Path, out_pdf: Path) -> Path:
    """
    Store a copy of the receipt as a PDF.

    Images are scaled onto a single letter page; PDFs are copied as-is.
    """
    ext = src.suffix.lower()
    if ext in PDF_EXTS:
        shutil.copy2(src, out_pdf)
        return out_pdf
    if ext not in IMAGE_EXTS:
        raise ReceiptProcessingError(f"Unsupported file type: {src.name}")

    from reportlab.pdfgen import canvas
    from reportlab.lib.pagesizes import letter
    from reportlab.lib.utils import ImageReader
    from PIL import Image

    with Image.open(src) as img:
        w, h = img.size
        # Scale to fit letter
        page_w, page_h = letter
        scale = min(page_w / w, page_h / h)
        new_w, new_h = w * scale, h * scale
        c = canvas.Canvas(out_pdf.as_posix(), pagesize=letter)
        x = (page_w - new_w) / 2
        y = (page_h - new_h) / 2
        c.drawImage(ImageReader(img), x, y, width=new_w, height=new_h,
                    preserveAspectRatio=True, anchor='c')
        c.showPage()
        c.save()
    return out_pdf
