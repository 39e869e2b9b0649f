"""Printer target configuration models."""

from typing import Any

from pydantic import BaseModel, Field, field_validator

# Standard raw-socket printing port (JetDirect / AppSocket)
DEFAULT_PORT = 9100
DEFAULT_PRINTER_CLASS = "ethernet"


class PrinterTarget(BaseModel):
    """A configured physical printer reachable over TCP."""

    id: str = Field(min_length=1)
    name: str
    address: str = ""
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    printer_class: str = DEFAULT_PRINTER_CLASS
    enabled: bool = True

    @field_validator("port", mode="before")
    @classmethod
    def _default_port(cls, value: Any) -> Any:
        # Stored configs may carry null or 0 for "not set"
        if value is None or value == 0:
            return DEFAULT_PORT
        return value

    @field_validator("address", mode="before")
    @classmethod
    def _strip_address(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, str):
            return value.strip()
        return value

    @property
    def endpoint(self) -> str:
        """Human-readable host:port string."""
        return f"{self.address}:{self.port}"

    def accepts(self, printer_class: str) -> bool:
        """Check if this printer can be targeted for the given class."""
        return self.enabled and bool(self.address) and self.printer_class == printer_class
