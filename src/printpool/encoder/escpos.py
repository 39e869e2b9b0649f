"""ESC/POS command encoding for receipts, labels and the cash drawer."""

import re

from pydantic import BaseModel, Field

from printpool.models.request import CashDrawerContent, LabelContent, LabelDescriptor, ReceiptContent

# Text is sent one byte per character; unmappable characters become "?"
CODEPAGE = "latin-1"

ESC = b"\x1b"
GS = b"\x1d"
LF = b"\n"

INIT = ESC + b"@"

ALIGN_LEFT = ESC + b"a\x00"
ALIGN_CENTER = ESC + b"a\x01"
ALIGN_RIGHT = ESC + b"a\x02"

BOLD_ON = ESC + b"E\x01"
BOLD_OFF = ESC + b"E\x00"

# ESC ! n print mode
NORMAL = ESC + b"!\x00"
DOUBLE_HEIGHT = ESC + b"!\x10"
DOUBLE_WIDTH = ESC + b"!\x20"
DOUBLE_SIZE = ESC + b"!\x30"

CUT = GS + b"V\x00"
CUT_PARTIAL = GS + b"VA\x03"


def feed(lines: int) -> bytes:
    """ESC d n: print and feed n lines."""
    return ESC + b"d" + bytes([lines])


# Label layout
LABEL_NAME_LIMIT = 30
LABEL_NAME_KEEP = 28
LABEL_ELLIPSIS = ".."

BARCODE_HEIGHT = GS + b"h\x50"  # 80 dots
BARCODE_MODULE_WIDTH = GS + b"w\x02"
BARCODE_HRI_BELOW = GS + b"H\x02"
BARCODE_HRI_FONT_A = GS + b"f\x00"
BARCODE_CODE128 = 0x49

# ESC p m t1 t2: pulse drawer pin m, on/off time in 2ms units
DRAWER_PULSE_ON = 0x19
DRAWER_PULSE_OFF = 0x19

# Line-level markup, checked in this order; first match wins
_LINE_TAGS: list[tuple[str, bytes, bytes]] = [
    ("CB", ALIGN_CENTER + BOLD_ON + DOUBLE_SIZE, NORMAL + BOLD_OFF),
    ("CD", ALIGN_CENTER + DOUBLE_SIZE, NORMAL),
    ("C", ALIGN_CENTER, ALIGN_LEFT),
    ("R", ALIGN_RIGHT, ALIGN_LEFT),
    ("L", ALIGN_LEFT, b""),
]

_BOLD_SPLIT = re.compile(r"(</?B>)")


class EncodeResult(BaseModel):
    """Result of encoding a print request, including any warnings."""

    payload: bytes = b""
    labels_encoded: int = 0
    missing_barcode: list[LabelDescriptor] = Field(default_factory=list)

    @property
    def warnings(self) -> list[str]:
        return [f'Missing barcode data: "{label.name}"' for label in self.missing_barcode]


def _text(value: str) -> bytes:
    return value.encode(CODEPAGE, errors="replace")


def truncate_name(name: str) -> str:
    """Shorten a product name to fit the label width."""
    if len(name) > LABEL_NAME_LIMIT:
        return name[:LABEL_NAME_KEEP] + LABEL_ELLIPSIS
    return name


def encode_label(label: LabelDescriptor) -> bytes:
    """Encode one label block.

    Returns an empty buffer if the label has neither UPC nor SKU.
    """
    barcode = label.barcode_data
    if not barcode:
        return b""

    data = _text(barcode)
    parts = [
        INIT,
        ALIGN_CENTER,
        BOLD_ON + DOUBLE_HEIGHT,
        _text(truncate_name(label.name)) + LF,
        NORMAL + BOLD_OFF,
    ]
    if label.sku:
        parts.append(_text(f"SKU: {label.sku}") + LF)
    parts += [
        BOLD_ON,
        _text(f"${label.price:.2f}") + LF,
        BOLD_OFF,
        LF,
        BARCODE_HEIGHT,
        BARCODE_MODULE_WIDTH,
        BARCODE_HRI_BELOW,
        BARCODE_HRI_FONT_A,
        GS + b"k" + bytes([BARCODE_CODE128, len(data)]) + data,
        LF + LF,
        feed(3),
        CUT,
    ]
    return b"".join(parts)


def encode_labels(content: LabelContent) -> EncodeResult:
    """Encode a label list, one block per copy, in request order."""
    result = EncodeResult()
    blocks: list[bytes] = []
    for label in content.labels:
        block = encode_label(label)
        if not block:
            result.missing_barcode.append(label)
            continue
        blocks.extend([block] * label.copies)
        result.labels_encoded += label.copies
    result.payload = b"".join(blocks)
    return result


def _encode_line(line: str) -> bytes:
    prefix = b""
    suffix = b""
    for tag, tag_prefix, tag_suffix in _LINE_TAGS:
        if f"<{tag}>" in line:
            prefix, suffix = tag_prefix, tag_suffix
            line = line.replace(f"<{tag}>", "").replace(f"</{tag}>", "")
            break

    if "<B>" not in line:
        return prefix + _text(line) + suffix + LF

    body = []
    for piece in _BOLD_SPLIT.split(line):
        if piece == "<B>":
            body.append(BOLD_ON)
        elif piece == "</B>":
            body.append(BOLD_OFF)
        elif piece:
            body.append(_text(piece))
    return prefix + b"".join(body) + suffix + LF


def encode_receipt(content: ReceiptContent) -> EncodeResult:
    """Convert receipt markup to ESC/POS.

    Supported tags: <CB> centre bold double, <CD> centre double, <C> centre,
    <R> right, <L> left (one per line), and inline <B>...</B> bold.
    """
    lines = content.text.split("\n")
    payload = INIT + b"".join(_encode_line(line) for line in lines) + feed(4) + CUT
    return EncodeResult(payload=payload)


def encode_cash_drawer(content: CashDrawerContent) -> EncodeResult:
    """Encode a drawer kick pulse on the given connector pin."""
    return EncodeResult(payload=ESC + b"p" + bytes([content.pin, DRAWER_PULSE_ON, DRAWER_PULSE_OFF]))


class EncodingError(Exception):
    """Exception raised when print content cannot be encoded."""

    pass
