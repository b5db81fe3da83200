"""
Receipt Attachment Service

Receipts are stored inline: the uploaded file is encoded as a base64
data URL and kept inside the expense record it belongs to.

This service handles:
1. Type and size checks on upload
2. Decoding images with Pillow to make sure they are real images
3. Downscaling oversized images before encoding
4. Turning a stored data URL back into a downloadable file

DESIGN DECISION: Inline storage keeps each record self-contained (one blob
holds everything), at the cost of a larger blob. The size limit and the
image downscale bound how much a single receipt can add.
"""

import base64
import binascii
import re
from io import BytesIO
from typing import Optional

from PIL import Image, UnidentifiedImageError

from expense_tracker.config import ReceiptSettings, get_settings
from expense_tracker.models.expense import Expense
from expense_tracker.models.receipt import ReceiptFile, ReceiptUpload


DATA_URL = re.compile(r"^data:(?P<mime>[\w.+\-]+/[\w.+\-]+);base64,(?P<payload>.*)$", re.DOTALL)

FILE_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
    "application/pdf": ".pdf",
}
DEFAULT_EXTENSION = ".png"


class ReceiptError(Exception):
    """Base exception for receipt handling errors."""
    pass


class UnsupportedReceiptTypeError(ReceiptError):
    """File type is not an accepted image or PDF."""
    pass


class ReceiptTooLargeError(ReceiptError):
    """File exceeds the configured upload size."""
    pass


class InvalidReceiptError(ReceiptError):
    """File content does not match its declared type or is corrupt."""
    pass


def encode_data_url(content: bytes, mime_type: str) -> str:
    payload = base64.b64encode(content).decode("ascii")
    return f"data:{mime_type};base64,{payload}"


def decode_data_url(data_url: str) -> tuple[bytes, str]:
    """
    Split a base64 data URL into (content, mime_type).

    Raises:
        InvalidReceiptError: If the value is not a base64 data URL
    """
    match = DATA_URL.match(data_url or "")
    if not match:
        raise InvalidReceiptError("Receipt is not a base64 data URL")
    try:
        content = base64.b64decode(match.group("payload"), validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidReceiptError(f"Receipt payload is not valid base64: {e}") from e
    return content, match.group("mime").lower()


class ReceiptService:
    """
    Encodes uploads into inline receipts and decodes them for download.

    Flow:
    1. Receive raw bytes, filename and declared MIME type
    2. Reject unsupported types and oversized files
    3. Verify the content (Pillow for images, PDF header for PDFs)
    4. Downscale large images
    5. Return the data URL to store on the expense
    """

    def __init__(self, settings: Optional[ReceiptSettings] = None):
        self._settings = settings or get_settings().receipts

    def attach(self, content: bytes, filename: str, mime_type: str) -> str:
        """
        Validate an uploaded file and encode it as a data URL.

        Raises:
            UnsupportedReceiptTypeError: Type is not accepted
            ReceiptTooLargeError: File is above the size limit
            InvalidReceiptError: Content is unreadable or mislabelled
        """
        upload = ReceiptUpload(
            original_filename=filename or "receipt",
            file_size_bytes=len(content),
            mime_type=mime_type or "",
        )

        if upload.mime_type not in self._settings.allowed_types_list:
            raise UnsupportedReceiptTypeError(
                f"Unsupported receipt type: {upload.mime_type or 'unknown'}. "
                f"Allowed: {', '.join(self._settings.allowed_types_list)}"
            )

        if upload.file_size_bytes == 0:
            raise InvalidReceiptError(f"{upload.original_filename} is empty")

        if upload.file_size_bytes > self._settings.max_size_bytes:
            raise ReceiptTooLargeError(
                f"{upload.original_filename} is {upload.file_size_bytes / 1024 / 1024:.1f} MB; "
                f"the limit is {self._settings.max_size_mb} MB"
            )

        if upload.is_pdf:
            if not content.startswith(b"%PDF"):
                raise InvalidReceiptError(f"{upload.original_filename} is not a PDF document")
            return encode_data_url(content, upload.mime_type)

        content, detected_mime = self._prepare_image(content, upload)
        return encode_data_url(content, detected_mime)

    def _prepare_image(
        self,
        content: bytes,
        upload: ReceiptUpload,
    ) -> tuple[bytes, str]:
        """
        Decode the image and downscale it if it is larger than allowed.

        Returns: (image_bytes, mime_type)
        """
        try:
            img = Image.open(BytesIO(content))
            img.load()
        except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as e:
            raise InvalidReceiptError(
                f"{upload.original_filename} could not be read as an image"
            ) from e

        image_format = img.format or "PNG"
        detected_mime = Image.MIME.get(image_format, upload.mime_type)
        if detected_mime not in self._settings.allowed_types_list:
            raise UnsupportedReceiptTypeError(
                f"{upload.original_filename} is a {image_format} image, which is not accepted"
            )

        limit = self._settings.max_image_dimension
        if max(img.size) <= limit:
            return content, detected_mime

        img.thumbnail((limit, limit))
        if image_format == "JPEG" and img.mode not in ("RGB", "L"):
            img = img.convert("RGB")

        buffer = BytesIO()
        img.save(buffer, format=image_format)
        return buffer.getvalue(), detected_mime

    def open(self, data_url: str) -> ReceiptFile:
        """Decode a stored receipt."""
        content, mime_type = decode_data_url(data_url)
        return ReceiptFile(content=content, mime_type=mime_type)

    def download(self, expense: Expense) -> ReceiptFile:
        """
        Decode an expense's receipt as a file named after the expense id.

        Raises:
            ReceiptError: If the expense has no receipt
        """
        if not expense.receipt:
            raise ReceiptError(f"Expense {expense.id} has no receipt")
        content, mime_type = decode_data_url(expense.receipt)
        extension = FILE_EXTENSIONS.get(mime_type, DEFAULT_EXTENSION)
        return ReceiptFile(
            content=content,
            mime_type=mime_type,
            filename=f"receipt-{expense.id}{extension}",
        )

    @staticmethod
    def is_image(data_url: Optional[str]) -> bool:
        return bool(data_url) and data_url.startswith("data:image/")
