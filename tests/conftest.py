"""Pytest configuration and fixtures."""

import asyncio

import pytest

from printpool.models.printer import PrinterTarget
from printpool.registry import PrinterRegistry
from printpool.storage import MemoryStore
from printpool.transport.base import BaseTransport, SendResult


class MockTransport(BaseTransport):
    """Transport that records calls and returns canned results per address."""

    def __init__(
        self,
        results: dict[str, SendResult] | None = None,
        delays: dict[str, float] | None = None,
    ) -> None:
        self.results = results or {}
        self.delays = delays or {}
        self.calls: list[tuple[str, int, bytes]] = []
        self.completed: list[str] = []

    async def send(self, address: str, port: int, payload: bytes) -> SendResult:
        self.calls.append((address, port, payload))
        delay = self.delays.get(address, 0.0)
        if delay:
            await asyncio.sleep(delay)
        self.completed.append(address)
        return self.results.get(address, SendResult.success())


def make_target(printer_id: str, address: str, **kwargs) -> PrinterTarget:
    """Build an enabled ethernet printer."""
    kwargs.setdefault("name", printer_id.upper())
    return PrinterTarget(id=printer_id, address=address, **kwargs)


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def registry(store: MemoryStore) -> PrinterRegistry:
    return PrinterRegistry(store)


@pytest.fixture
def transport() -> MockTransport:
    return MockTransport()
