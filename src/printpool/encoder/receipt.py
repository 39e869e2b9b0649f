"""Jinja2 receipt formatter producing receipt markup."""

from jinja2 import Environment, TemplateSyntaxError, UndefinedError
from pydantic import BaseModel, Field

from printpool.encoder.escpos import EncodingError

DEFAULT_LINE_WIDTH = 32
MIN_LINE_WIDTH = 24

# Item name column keeps room for " qty    price"
_QTY_PRICE_WIDTH = 12

RECEIPT_TEMPLATE = """\
<CB>{{ store_name }}</CB>
<C>{{ rule }}</C>
<L>Order: {{ order_no }}</L>
<L>Date: {{ date_time }}</L>
{%- if created_by %}
<L>Cashier: {{ created_by }}</L>
{%- endif %}
<C>{{ rule }}</C>
<L>{{ "Item" | ljust(name_width) }}{{ "Qty" | rjust(4) }}{{ "Price" | rjust(8) }}</L>
<C>{{ rule }}</C>
{%- for item in items %}
<L>{{ item.name | shorten(name_width) | ljust(name_width) }}{{ item.qty | string | rjust(4) }}{{ item.total_price | money | rjust(8) }}</L>
{%- endfor %}
<C>{{ rule }}</C>
<L>{{ "Subtotal:" | ljust(width - 12) }}{{ subtotal | money | rjust(12) }}</L>
{%- if discount > 0 %}
<L>{{ "Discount:" | ljust(width - 12) }}{{ ("-" ~ (discount | money)) | rjust(12) }}</L>
{%- endif %}
<L>{{ "Tax:" | ljust(width - 12) }}{{ (tax_label or (tax | money)) | rjust(12) }}</L>
<C>{{ rule }}</C>
<CB>TOTAL: {{ total | money }}</CB>
<C>{{ rule }}</C>
{%- for line in footer %}
<C>{{ line }}</C>
{%- endfor %}


"""


class ReceiptItem(BaseModel):
    """A receipt line item."""

    name: str
    qty: int = 1
    total_price: float = 0.0


class ReceiptData(BaseModel):
    """Sale data rendered onto a receipt."""

    order_no: str
    date_time: str
    items: list[ReceiptItem] = Field(default_factory=list)
    subtotal: float = 0.0
    discount: float = 0.0
    tax: float = 0.0
    tax_label: str | None = None
    total: float = 0.0
    created_by: str | None = None
    store_name: str = "RETAIL POS"
    footer: list[str] = Field(default_factory=lambda: ["Thank you for your business!", "Please come again"])


def _money_filter(value: float) -> str:
    return f"${value:.2f}"


def _shorten_filter(value: str, width: int) -> str:
    if len(value) > width:
        return value[: width - 3] + "..."
    return value


class ReceiptFormatter:
    """Render receipt data into <C>/<L>/<CB> markup for encode_receipt."""

    def __init__(self, template: str = RECEIPT_TEMPLATE) -> None:
        self._env = Environment(
            autoescape=False,
            keep_trailing_newline=True,
        )
        self._env.filters["money"] = _money_filter
        self._env.filters["shorten"] = _shorten_filter
        self._env.filters["ljust"] = lambda value, width: str(value).ljust(width)
        self._env.filters["rjust"] = lambda value, width: str(value).rjust(width)
        self._template_source = template

    def render(self, data: ReceiptData, width: int = DEFAULT_LINE_WIDTH) -> str:
        """Render receipt markup sized to a character line width.

        Raises:
            EncodingError: If the template fails to render.
        """
        width = max(width, MIN_LINE_WIDTH)
        try:
            template = self._env.from_string(self._template_source)
            return template.render(
                **data.model_dump(),
                width=width,
                name_width=width - _QTY_PRICE_WIDTH,
                rule="-" * width,
            )
        except TemplateSyntaxError as e:
            raise EncodingError(f"Receipt template syntax error: {e}") from e
        except UndefinedError as e:
            raise EncodingError(f"Undefined variable in receipt template: {e}") from e


_default_formatter = ReceiptFormatter()


def format_receipt_text(data: ReceiptData, width: int = DEFAULT_LINE_WIDTH) -> str:
    """Format receipt data as markup using the built-in template."""
    return _default_formatter.render(data, width)
