"""Printer pool registry: configured printers with a load-once cache."""

import asyncio
import logging
from collections.abc import Iterable
from typing import Any

from pydantic import TypeAdapter, ValidationError

from printpool.models.printer import PrinterTarget
from printpool.storage import KeyValueStore, StorageError

logger = logging.getLogger(__name__)

PRINTERS_STORAGE_KEY = "printer_pool_config"

_targets_adapter = TypeAdapter(list[PrinterTarget])


class PrinterRegistry:
    """Source of truth for configured printers.

    The printer list is read from storage once and cached in memory. Every
    mutation writes the full updated list back to storage before the cache
    is replaced, so a failed write leaves both unchanged.
    """

    def __init__(
        self,
        store: KeyValueStore,
        defaults: Iterable[PrinterTarget] = (),
        storage_key: str = PRINTERS_STORAGE_KEY,
    ) -> None:
        self._store = store
        self._defaults = list(defaults)
        self._storage_key = storage_key
        self._targets: list[PrinterTarget] = []
        self._loaded = False
        self._lock = asyncio.Lock()

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    async def load(self) -> None:
        """Populate the cache from storage if not done already.

        Safe to call concurrently; only the first caller reads storage.
        Read failures leave the pool empty instead of raising.
        """
        if self._loaded:
            return

        async with self._lock:
            if self._loaded:
                return
            self._targets = await self._read()
            self._loaded = True
            logger.info(f"Printer pool loaded: {len(self._targets)} printer(s)")

    async def _read(self) -> list[PrinterTarget]:
        try:
            raw = await self._store.get_item(self._storage_key)
        except StorageError as e:
            logger.warning(f"Failed to read printer pool, starting empty: {e}")
            return []

        if raw is None:
            if self._defaults:
                logger.info(f"No stored printer pool, using {len(self._defaults)} configured default(s)")
            return _dedupe(self._defaults)

        try:
            return _dedupe(_targets_adapter.validate_json(raw))
        except ValidationError as e:
            logger.warning(f"Stored printer pool is invalid, starting empty: {e}")
            return []

    def list_targets(self) -> list[PrinterTarget]:
        """Return the cached printers (no storage access)."""
        return list(self._targets)

    def get(self, printer_id: str) -> PrinterTarget | None:
        """Get a cached printer by ID."""
        for target in self._targets:
            if target.id == printer_id:
                return target
        return None

    def enabled_targets_for(self, printer_class: str) -> list[PrinterTarget]:
        """Printers that should receive a job of the given class."""
        return [target for target in self._targets if target.accepts(printer_class)]

    def has_enabled_target(self, printer_class: str) -> bool:
        return any(target.accepts(printer_class) for target in self._targets)

    async def add(self, target: PrinterTarget) -> None:
        """Add a printer to the pool.

        Raises:
            DuplicatePrinterError: If a printer with the same ID exists.
            StorageError: If the updated pool cannot be persisted.
        """
        await self.load()
        async with self._lock:
            if self.get(target.id) is not None:
                raise DuplicatePrinterError(f"Printer already exists: {target.id}")
            await self._commit([*self._targets, target])
        logger.info(f"Printer added: {target.id} ({target.name}) at {target.endpoint} [{target.printer_class}]")

    async def update(self, printer_id: str, **changes: Any) -> PrinterTarget:
        """Apply field changes to a printer and persist the pool.

        Raises:
            PrinterNotFoundError: If no printer has this ID.
            RegistryError: If the changes try to alter the printer ID.
            ValidationError: If the changed fields are invalid.
            StorageError: If the updated pool cannot be persisted.
        """
        if changes.get("id", printer_id) != printer_id:
            raise RegistryError(f"Printer ID cannot be changed: {printer_id}")

        await self.load()
        async with self._lock:
            current = self._require(printer_id)
            updated = PrinterTarget.model_validate({**current.model_dump(), **changes})
            await self._commit([updated if t.id == printer_id else t for t in self._targets])
        logger.info(f"Printer updated: {printer_id} {changes}")
        return updated

    async def set_enabled(self, printer_id: str, enabled: bool) -> PrinterTarget:
        """Enable or disable a printer."""
        return await self.update(printer_id, enabled=enabled)

    async def remove(self, printer_id: str) -> None:
        """Remove a printer from the pool.

        Raises:
            PrinterNotFoundError: If no printer has this ID.
            StorageError: If the updated pool cannot be persisted.
        """
        await self.load()
        async with self._lock:
            self._require(printer_id)
            await self._commit([t for t in self._targets if t.id != printer_id])
        logger.info(f"Printer removed: {printer_id}")

    def _require(self, printer_id: str) -> PrinterTarget:
        target = self.get(printer_id)
        if target is None:
            raise PrinterNotFoundError(f"Printer not found: {printer_id}")
        return target

    async def _commit(self, targets: list[PrinterTarget]) -> None:
        """Persist the full list, then swap it into the cache."""
        payload = _targets_adapter.dump_json(targets).decode()
        await self._store.set_item(self._storage_key, payload)
        self._targets = targets

    def log_status(self) -> None:
        """Log a summary of the pool."""
        enabled = [t for t in self._targets if t.enabled]
        logger.info(f"Printer pool: {len(self._targets)} printer(s), {len(enabled)} enabled")
        for target in self._targets:
            state = "enabled" if target.enabled else "disabled"
            logger.info(f"  {target.id} ({target.name}) {target.endpoint} [{target.printer_class}] {state}")


def _dedupe(targets: Iterable[PrinterTarget]) -> list[PrinterTarget]:
    """Drop repeated IDs, keeping the first occurrence."""
    seen: set[str] = set()
    result = []
    for target in targets:
        if target.id in seen:
            logger.warning(f"Ignoring duplicate printer ID in stored pool: {target.id}")
            continue
        seen.add(target.id)
        result.append(target)
    return result


class RegistryError(Exception):
    """Exception raised for invalid printer pool operations."""

    pass


class DuplicatePrinterError(RegistryError):
    """Raised when adding a printer whose ID is already in the pool."""

    pass


class PrinterNotFoundError(RegistryError):
    """Raised when a printer ID is not in the pool."""

    pass
