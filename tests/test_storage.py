"""Tests for key-value storage backends."""

import json
import tempfile
from pathlib import Path

import pytest

from printpool.storage import JsonFileStore, MemoryStore, StorageError


class TestMemoryStore:
    async def test_set_get_remove(self):
        store = MemoryStore()

        assert await store.get_item("k") is None
        await store.set_item("k", "v")
        assert await store.get_item("k") == "v"
        await store.remove_item("k")
        assert await store.get_item("k") is None

    async def test_initial_items_copied(self):
        items = {"k": "v"}
        store = MemoryStore(items)
        await store.set_item("k", "changed")

        assert items == {"k": "v"}


class TestJsonFileStore:
    @pytest.fixture
    def tmp_dir(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            yield Path(tmpdir)

    async def test_missing_file_reads_none(self, tmp_dir):
        store = JsonFileStore(tmp_dir / "pool.json")
        assert await store.get_item("printer_pool_config") is None

    async def test_values_persist_across_instances(self, tmp_dir):
        path = tmp_dir / "nested" / "pool.json"
        await JsonFileStore(path).set_item("a", "1")
        await JsonFileStore(path).set_item("b", "2")

        store = JsonFileStore(path)
        assert await store.get_item("a") == "1"
        assert await store.get_item("b") == "2"
        assert json.loads(path.read_text()) == {"a": "1", "b": "2"}

    async def test_no_temp_files_left(self, tmp_dir):
        path = tmp_dir / "pool.json"
        await JsonFileStore(path).set_item("a", "1")

        assert [p.name for p in tmp_dir.iterdir()] == ["pool.json"]

    async def test_remove_item(self, tmp_dir):
        path = tmp_dir / "pool.json"
        store = JsonFileStore(path)
        await store.set_item("a", "1")
        await store.remove_item("a")
        await store.remove_item("missing")

        assert await store.get_item("a") is None
        assert json.loads(path.read_text()) == {}

    async def test_corrupt_file(self, tmp_dir):
        path = tmp_dir / "pool.json"
        path.write_text("{not json")

        with pytest.raises(StorageError):
            await JsonFileStore(path).get_item("a")

    async def test_invalid_utf8_file(self, tmp_dir):
        path = tmp_dir / "pool.json"
        path.write_bytes(b'{"printer_pool_config": "\xff\xfe"}')
        store = JsonFileStore(path)

        with pytest.raises(StorageError, match="Failed to read"):
            await store.get_item("printer_pool_config")
        with pytest.raises(StorageError, match="Failed to read"):
            await store.set_item("printer_pool_config", "[]")

    async def test_non_object_file(self, tmp_dir):
        path = tmp_dir / "pool.json"
        path.write_text("[1, 2]")

        with pytest.raises(StorageError, match="expected a JSON object"):
            await JsonFileStore(path).get_item("a")

    async def test_non_string_value(self, tmp_dir):
        path = tmp_dir / "pool.json"
        path.write_text('{"a": 5}')

        with pytest.raises(StorageError, match="not a string"):
            await JsonFileStore(path).get_item("a")

    async def test_unwritable_location(self, tmp_dir):
        blocker = tmp_dir / "file"
        blocker.write_text("")

        with pytest.raises(StorageError, match="Failed to write"):
            await JsonFileStore(blocker / "pool.json").set_item("a", "1")
