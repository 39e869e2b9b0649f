"""Abstract base class for printer transports."""

from abc import ABC, abstractmethod

from pydantic import BaseModel

# Failure reasons reported in SendResult.error
TIMEOUT = "Timeout"
CONNECT_FAILED = "Connect failed"
WRITE_FAILED = "Write failed"
SOCKET_TIMEOUT = "Socket timeout"


class SendResult(BaseModel):
    """Outcome of delivering one payload to one printer."""

    ok: bool
    error: str | None = None

    @classmethod
    def success(cls) -> "SendResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, reason: str) -> "SendResult":
        return cls(ok=False, error=reason)


class BaseTransport(ABC):
    """Abstract base class for delivering raw printer commands."""

    @abstractmethod
    async def send(self, address: str, port: int, payload: bytes) -> SendResult:
        """Deliver a payload to a network endpoint.

        Implementations resolve exactly once and never raise for network
        failures; those are reported through the returned SendResult.

        Args:
            address: Printer host name or IP address.
            port: Printer TCP port.
            payload: Raw printer command data.

        Returns:
            SendResult describing success or the failure reason.
        """
        pass
