"""
Tests for receipt attachment handling.
"""

import base64
from io import BytesIO

import pytest
from PIL import Image

from expense_tracker.config import ReceiptSettings
from expense_tracker.services.receipts import (
    InvalidReceiptError,
    ReceiptError,
    ReceiptService,
    ReceiptTooLargeError,
    UnsupportedReceiptTypeError,
    decode_data_url,
    encode_data_url,
)


PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<<>>\nendobj\ntrailer\n<<>>\n%%EOF\n"


@pytest.fixture
def service():
    return ReceiptService(ReceiptSettings(max_size_mb=1, max_image_dimension=400))


class TestAttach:
    """Tests for turning uploads into inline receipts."""

    def test_small_png_kept_as_is(self, service, png_bytes):
        content = png_bytes()
        data_url = service.attach(content, "lunch.png", "image/png")

        assert data_url.startswith("data:image/png;base64,")
        assert service.open(data_url).content == content

    def test_large_image_downscaled(self, service, png_bytes):
        data_url = service.attach(png_bytes(size=(1200, 600)), "big.png", "image/png")

        img = Image.open(BytesIO(service.open(data_url).content))
        assert img.format == "PNG"
        assert max(img.size) == 400
        assert img.size == (400, 200)

    def test_large_jpeg_stays_jpeg(self, service):
        buffer = BytesIO()
        Image.new("RGB", (800, 800), "blue").save(buffer, format="JPEG")

        data_url = service.attach(buffer.getvalue(), "scan.jpg", "image/jpeg")

        assert data_url.startswith("data:image/jpeg;base64,")
        img = Image.open(BytesIO(service.open(data_url).content))
        assert img.size == (400, 400)

    def test_mislabelled_image_uses_detected_type(self, service, png_bytes):
        data_url = service.attach(png_bytes(), "photo.jpg", "image/jpeg")
        assert data_url.startswith("data:image/png;base64,")

    def test_pdf_accepted(self, service):
        data_url = service.attach(PDF_BYTES, "bill.pdf", "application/pdf")
        assert data_url.startswith("data:application/pdf;base64,")
        assert service.open(data_url).content == PDF_BYTES

    def test_unsupported_type(self, service):
        with pytest.raises(UnsupportedReceiptTypeError):
            service.attach(b"hello", "notes.txt", "text/plain")

    def test_empty_file(self, service):
        with pytest.raises(InvalidReceiptError):
            service.attach(b"", "empty.png", "image/png")

    def test_too_large(self, service):
        content = PDF_BYTES + b"0" * (1024 * 1024)
        with pytest.raises(ReceiptTooLargeError):
            service.attach(content, "huge.pdf", "application/pdf")

    def test_fake_pdf(self, service):
        with pytest.raises(InvalidReceiptError):
            service.attach(b"not really a pdf", "bill.pdf", "application/pdf")

    def test_corrupt_image(self, service):
        with pytest.raises(InvalidReceiptError):
            service.attach(b"\x89PNG garbage", "broken.png", "image/png")

    def test_errors_share_a_base_class(self, service):
        with pytest.raises(ReceiptError):
            service.attach(b"hello", "notes.txt", "text/plain")


class TestDownload:
    """Tests for turning stored receipts back into files."""

    def test_png_named_after_expense(self, service, make_expense, png_bytes):
        content = png_bytes()
        expense = make_expense(id=1709712000123, receipt=encode_data_url(content, "image/png"))

        receipt = service.download(expense)

        assert receipt.filename == "receipt-1709712000123.png"
        assert receipt.content == content
        assert receipt.is_image

    def test_jpeg_and_pdf_extensions(self, service, make_expense):
        jpeg = make_expense(id=7, receipt=encode_data_url(b"\xff\xd8", "image/jpeg"))
        pdf = make_expense(id=8, receipt=encode_data_url(PDF_BYTES, "application/pdf"))

        assert service.download(jpeg).filename == "receipt-7.jpg"
        assert service.download(pdf).filename == "receipt-8.pdf"
        assert not service.download(pdf).is_image

    def test_unknown_type_defaults_to_png(self, service, make_expense):
        expense = make_expense(id=9, receipt="data:image/bmp;base64,AAAA")
        assert service.download(expense).filename == "receipt-9.png"

    def test_no_receipt(self, service, make_expense):
        with pytest.raises(ReceiptError):
            service.download(make_expense())


class TestDataUrls:
    """Tests for data URL helpers."""

    def test_decode(self):
        payload = base64.b64encode(b"abc").decode()
        assert decode_data_url(f"data:image/PNG;base64,{payload}") == (b"abc", "image/png")

    @pytest.mark.parametrize("value", [
        "",
        "https://example.com/receipt.png",
        "data:image/png;base64,@@@@",
    ])
    def test_decode_rejects_invalid(self, value):
        with pytest.raises(InvalidReceiptError):
            decode_data_url(value)

    def test_is_image(self):
        assert ReceiptService.is_image("data:image/png;base64,AAAA")
        assert not ReceiptService.is_image("data:application/pdf;base64,AAAA")
        assert not ReceiptService.is_image(None)
