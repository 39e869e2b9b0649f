"""Tests for ESC/POS encoding of labels, receipts and the cash drawer."""

import re

import pytest

from printpool.encoder import EncodingError, encode
from printpool.encoder.escpos import (
    ALIGN_CENTER,
    ALIGN_LEFT,
    ALIGN_RIGHT,
    BOLD_OFF,
    BOLD_ON,
    CUT,
    DOUBLE_SIZE,
    INIT,
    NORMAL,
    encode_cash_drawer,
    encode_label,
    encode_labels,
    encode_receipt,
    feed,
    truncate_name,
)
from printpool.models.request import CashDrawerContent, LabelContent, LabelDescriptor, ReceiptContent

_BARCODE = re.compile(rb"\x1dk\x49(.)", re.DOTALL)


def barcodes(payload: bytes) -> list[bytes]:
    """Extract Code128 barcode data from a payload, in order."""
    found = []
    for match in _BARCODE.finditer(payload):
        length = match.group(1)[0]
        start = match.end()
        found.append(payload[start : start + length])
    return found


class TestTruncateName:
    def test_short_name_unchanged(self):
        assert truncate_name("Widget") == "Widget"

    def test_exactly_thirty_characters_unchanged(self):
        name = "x" * 30
        assert truncate_name(name) == name

    def test_long_name_shortened(self):
        name = "Premium Organic Fair Trade Coffee Beans 1kg"
        assert truncate_name(name) == name[:28] + ".."
        assert len(truncate_name(name)) == 30


class TestEncodeLabel:
    def test_exact_layout(self):
        label = LabelDescriptor(name="Widget", sku="W-1", upc="012345678905", price=3.5)

        expected = (
            b"\x1b@"
            b"\x1ba\x01"
            b"\x1bE\x01\x1b!\x10"
            b"Widget\n"
            b"\x1b!\x00\x1bE\x00"
            b"SKU: W-1\n"
            b"\x1bE\x01"
            b"$3.50\n"
            b"\x1bE\x00"
            b"\n"
            b"\x1dh\x50\x1dw\x02\x1dH\x02\x1df\x00"
            b"\x1dk\x49\x0c012345678905"
            b"\n\n"
            b"\x1bd\x03"
            b"\x1dV\x00"
        )
        assert encode_label(label) == expected

    def test_sku_line_omitted_without_sku(self):
        payload = encode_label(LabelDescriptor(name="Widget", upc="0001", price=1))

        assert b"SKU:" not in payload
        assert barcodes(payload) == [b"0001"]

    def test_sku_used_as_barcode_without_upc(self):
        payload = encode_label(LabelDescriptor(name="Widget", sku="W-1"))

        assert barcodes(payload) == [b"W-1"]
        assert b"$0.00\n" in payload

    def test_long_name_truncated_in_payload(self):
        name = "A" * 40
        payload = encode_label(LabelDescriptor(name=name, sku="S"))

        assert b"A" * 28 + b"..\n" in payload
        assert b"A" * 29 not in payload

    def test_missing_barcode_gives_empty_block(self):
        assert encode_label(LabelDescriptor(name="Widget")) == b""


class TestEncodeLabels:
    def test_copies_and_order(self):
        content = LabelContent(
            labels=[
                LabelDescriptor(name="First", sku="A", copies=2),
                LabelDescriptor(name="Second", sku="B"),
                LabelDescriptor(name="Third", sku="C", copies=3),
            ]
        )

        result = encode_labels(content)

        assert barcodes(result.payload) == [b"A", b"A", b"B", b"C", b"C", b"C"]
        assert result.payload.count(CUT) == 6
        assert result.labels_encoded == 6
        assert result.warnings == []

    def test_zero_copies_prints_nothing(self):
        result = encode_labels(LabelContent(labels=[LabelDescriptor(name="Widget", sku="A", copies=0)]))

        assert result.payload == b""
        assert result.missing_barcode == []

    def test_missing_barcode_skipped_with_warning(self):
        content = LabelContent(
            labels=[
                LabelDescriptor(name="No Code"),
                LabelDescriptor(name="Has Code", upc="123"),
            ]
        )

        result = encode_labels(content)

        assert barcodes(result.payload) == [b"123"]
        assert [label.name for label in result.missing_barcode] == ["No Code"]
        assert result.warnings == ['Missing barcode data: "No Code"']

    def test_empty_label_list(self):
        result = encode_labels(LabelContent(labels=[]))

        assert result.payload == b""
        assert result.warnings == []


class TestEncodeReceipt:
    def test_framing(self):
        payload = encode_receipt(ReceiptContent(text="Hello")).payload

        assert payload.startswith(INIT)
        assert payload.endswith(feed(4) + CUT)
        assert payload == INIT + b"Hello\n" + feed(4) + CUT

    def test_centre_bold_line(self):
        payload = encode_receipt(ReceiptContent(text="<CB>RETAIL POS</CB>")).payload

        assert ALIGN_CENTER + BOLD_ON + DOUBLE_SIZE + b"RETAIL POS" + NORMAL + BOLD_OFF + b"\n" in payload

    def test_centre_double_line(self):
        payload = encode_receipt(ReceiptContent(text="<CD>BIG</CD>")).payload

        assert ALIGN_CENTER + DOUBLE_SIZE + b"BIG" + NORMAL + b"\n" in payload

    def test_centre_and_right_reset_alignment(self):
        payload = encode_receipt(ReceiptContent(text="<C>mid</C>\n<R>right</R>")).payload

        assert ALIGN_CENTER + b"mid" + ALIGN_LEFT + b"\n" in payload
        assert ALIGN_RIGHT + b"right" + ALIGN_LEFT + b"\n" in payload

    def test_left_line(self):
        payload = encode_receipt(ReceiptContent(text="<L>Item 1</L>")).payload

        assert ALIGN_LEFT + b"Item 1\n" in payload
        assert b"<L>" not in payload

    def test_inline_bold(self):
        payload = encode_receipt(ReceiptContent(text="<L>Total: <B>$5.00</B></L>")).payload

        assert ALIGN_LEFT + b"Total: " + BOLD_ON + b"$5.00" + BOLD_OFF + b"\n" in payload
        assert b"<B>" not in payload

    def test_first_matching_tag_wins(self):
        # <CB> is checked before <C>, so the plain centre tag stays in the text
        payload = encode_receipt(ReceiptContent(text="<CB>A</CB><C>B</C>")).payload

        assert ALIGN_CENTER + BOLD_ON + DOUBLE_SIZE + b"A<C>B</C>" in payload

    def test_unmappable_characters_replaced(self):
        payload = encode_receipt(ReceiptContent(text="Café ☃")).payload

        assert b"Caf\xe9 ?\n" in payload

    def test_blank_lines_kept(self):
        payload = encode_receipt(ReceiptContent(text="a\n\nb")).payload

        assert INIT + b"a\n\nb\n" + feed(4) in payload


class TestCashDrawer:
    def test_default_pin(self):
        assert encode_cash_drawer(CashDrawerContent()).payload == b"\x1bp\x00\x19\x19"

    def test_second_pin(self):
        assert encode_cash_drawer(CashDrawerContent(pin=1)).payload == b"\x1bp\x01\x19\x19"


class TestEncodeDispatch:
    def test_dispatches_by_kind(self):
        assert encode(ReceiptContent(text="x")).payload.startswith(INIT)
        assert encode(CashDrawerContent()).payload.startswith(b"\x1bp")
        assert barcodes(encode(LabelContent(labels=[LabelDescriptor(name="n", sku="s")])).payload) == [b"s"]

    def test_unknown_content_rejected(self):
        with pytest.raises(EncodingError, match="Unsupported print content"):
            encode("not content")  # type: ignore[arg-type]
