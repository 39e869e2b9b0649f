"""Composition root: wires storage, registry, transport and queue together."""

import logging
from pathlib import Path

from printpool.config import AppConfig
from printpool.queue import PrintJobQueue
from printpool.registry import PrinterRegistry
from printpool.storage import JsonFileStore, KeyValueStore
from printpool.transport.base import BaseTransport
from printpool.transport.tcp import TCPTransport

logger = logging.getLogger(__name__)


class PrintApp:
    """Owns the printing components for one process.

    Use as an async context manager: the printer pool is loaded on entry and
    in-flight jobs are awaited on exit.
    """

    def __init__(
        self,
        config: AppConfig,
        base_dir: Path = Path("."),
        store: KeyValueStore | None = None,
        transport: BaseTransport | None = None,
    ) -> None:
        self.config = config
        self.store = store or JsonFileStore(config.resolve_storage_path(base_dir))
        self.registry = PrinterRegistry(self.store, defaults=config.printers)
        self.transport = transport or TCPTransport(timeout=config.send_timeout_seconds)
        self.queue = PrintJobQueue(
            self.registry,
            self.transport,
            retention_seconds=config.job_retention_seconds,
        )

    async def start(self) -> None:
        await self.registry.load()
        logger.info("printpool startup complete")

    async def stop(self) -> None:
        await self.queue.close()
        logger.info("printpool shutdown complete")

    async def __aenter__(self) -> "PrintApp":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()
