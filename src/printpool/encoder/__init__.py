"""ESC/POS command encoders for printpool."""

from printpool.encoder.escpos import (
    EncodeResult,
    EncodingError,
    encode_cash_drawer,
    encode_label,
    encode_labels,
    encode_receipt,
)
from printpool.encoder.raster import encode_image, image_to_escpos
from printpool.encoder.receipt import ReceiptData, ReceiptFormatter, ReceiptItem, format_receipt_text
from printpool.models.request import CashDrawerContent, ImageContent, LabelContent, PrintContent, ReceiptContent

__all__ = [
    "EncodeResult",
    "EncodingError",
    "ReceiptData",
    "ReceiptFormatter",
    "ReceiptItem",
    "encode",
    "encode_cash_drawer",
    "encode_image",
    "encode_label",
    "encode_labels",
    "encode_receipt",
    "format_receipt_text",
    "image_to_escpos",
]


def encode(content: PrintContent) -> EncodeResult:
    """Encode print content into an ESC/POS payload.

    Raises:
        EncodingError: If the content cannot be encoded.
    """
    if isinstance(content, ReceiptContent):
        return encode_receipt(content)
    if isinstance(content, LabelContent):
        return encode_labels(content)
    if isinstance(content, ImageContent):
        return encode_image(content)
    if isinstance(content, CashDrawerContent):
        return encode_cash_drawer(content)
    raise EncodingError(f"Unsupported print content: {type(content).__name__}")
