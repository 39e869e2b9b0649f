"""Print request models."""

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from printpool.models.printer import DEFAULT_PRINTER_CLASS

# Default raster width in dots (80mm paper at 203 dpi)
DEFAULT_IMAGE_WIDTH = 576


class LabelDescriptor(BaseModel):
    """A single product label to print."""

    model_config = ConfigDict(frozen=True)

    name: str
    sku: str = Field(default="", max_length=255)
    upc: str = Field(default="", max_length=255)
    price: float = 0.0
    copies: int = Field(default=1, ge=0)

    @property
    def barcode_data(self) -> str:
        """Barcode payload: UPC when present, otherwise SKU."""
        return self.upc or self.sku


class ReceiptContent(BaseModel):
    """Receipt text with inline alignment/emphasis markup."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["receipt"] = "receipt"
    text: str


class LabelContent(BaseModel):
    """A list of product labels."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["labels"] = "labels"
    labels: tuple[LabelDescriptor, ...] = ()


class ImageContent(BaseModel):
    """A PNG image printed as a raster bitmap."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["image"] = "image"
    png_base64: str  # Raw base64 or a data URI
    width: int = Field(default=DEFAULT_IMAGE_WIDTH, gt=0, le=65535)


class CashDrawerContent(BaseModel):
    """Cash drawer kick pulse."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["cash_drawer"] = "cash_drawer"
    pin: Literal[0, 1] = 0


PrintContent = Annotated[
    ReceiptContent | LabelContent | ImageContent | CashDrawerContent,
    Field(discriminator="kind"),
]


class PrintRequest(BaseModel):
    """A logical unit of print work submitted by a caller."""

    model_config = ConfigDict(frozen=True)

    target_class: str = DEFAULT_PRINTER_CLASS
    content: PrintContent
    # Send to this printer only, regardless of class
    printer_id: str | None = None
