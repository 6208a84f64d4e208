"""Tests for the metadata registry."""

from __future__ import annotations

import threading

import pytest
from structlog.testing import capture_logs

from tagorm.errors import DuplicateRoleError, RegistrationError
from tagorm.registry import MetadataRegistry
from tests._support.records import Item, Person, TwoKeys, row_type


@pytest.fixture
def registry() -> MetadataRegistry:
    return MetadataRegistry()


class TestResolve:
    def test_cached_identity(self, registry):
        first = registry.resolve(Item)
        registry.resolve(Person)
        assert registry.resolve(Item()) is first
        assert len(registry) == 2

    def test_contains_and_get(self, registry):
        assert Item not in registry
        assert registry.get(Item) is None
        table = registry.resolve(Item)
        assert Item in registry
        assert registry.get(Item()) is table

    def test_failure_is_not_cached(self, registry):
        with pytest.raises(DuplicateRoleError):
            registry.resolve(TwoKeys)
        assert TwoKeys not in registry

    def test_same_qualified_name_kept_apart(self, registry):
        narrow, wide = row_type(wide=False), row_type(wide=True)
        assert narrow.__qualname__ == wide.__qualname__
        assert registry.resolve(narrow).column_names == ["A", "ID"]
        assert registry.resolve(wide).column_names == ["A", "B", "ID"]
        assert registry.resolve(wide).record_type is wide
        assert len(registry) == 2

    def test_logs_resolution(self, registry):
        with capture_logs() as logs:
            registry.resolve(Item)
            registry.resolve(Item)
        resolved = [entry for entry in logs if entry["event"] == "metadata.resolved"]
        assert len(resolved) == 1
        assert resolved[0]["columns"] == ["NAME", "OWNERID", "ID"]

    def test_concurrent_resolution_builds_once(self, registry):
        results = []

        def worker():
            results.append(registry.resolve(Item))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(results) == 8
        assert all(table is results[0] for table in results)


class TestRegister:
    def test_register_before_use(self, registry):
        table = registry.register(Item, "stock")
        assert table.name == "STOCK"
        assert registry.resolve(Item) is table

    def test_register_after_use_rejected(self, registry):
        cached = registry.resolve(Item)
        with pytest.raises(RegistrationError) as exc_info:
            registry.register(Item, "stock")
        assert exc_info.value.context.table == "ITEM"
        assert registry.resolve(Item) is cached

    def test_registries_are_independent(self):
        one, two = MetadataRegistry(), MetadataRegistry()
        one.register(Item, "stock")
        assert two.resolve(Item).name == "ITEM"

    def test_clear(self, registry):
        registry.resolve(Item)
        registry.clear()
        assert len(registry) == 0
        assert registry.register(Item, "stock").name == "STOCK"
