"""Printer transports for printpool."""

from printpool.transport.base import (
    CONNECT_FAILED,
    SOCKET_TIMEOUT,
    TIMEOUT,
    WRITE_FAILED,
    BaseTransport,
    SendResult,
)
from printpool.transport.tcp import DEFAULT_TIMEOUT_SECONDS, TCPTransport

__all__ = [
    "CONNECT_FAILED",
    "DEFAULT_TIMEOUT_SECONDS",
    "SOCKET_TIMEOUT",
    "TIMEOUT",
    "WRITE_FAILED",
    "BaseTransport",
    "SendResult",
    "TCPTransport",
]
