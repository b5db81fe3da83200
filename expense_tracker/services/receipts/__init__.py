"""Receipt attachment services package."""

from expense_tracker.services.receipts.receipt_service import (
    InvalidReceiptError,
    ReceiptError,
    ReceiptService,
    ReceiptTooLargeError,
    UnsupportedReceiptTypeError,
    decode_data_url,
    encode_data_url,
)

__all__ = [
    "InvalidReceiptError",
    "ReceiptError",
    "ReceiptService",
    "ReceiptTooLargeError",
    "UnsupportedReceiptTypeError",
    "decode_data_url",
    "encode_data_url",
]
