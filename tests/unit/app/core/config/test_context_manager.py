"""Unit tests for the configuration context manager."""

import asyncio
from concurrent.futures import ThreadPoolExecutor

import pytest

from src.app.runtime.config.config_data import ConfigData
from src.app.runtime.context import (
    AppContext,
    get_config,
    get_context,
    merge_configs,
    with_context,
)


class TestContextManager:
    """Test the context manager functionality."""

    def test_default_context_available(self):
        context = get_context()
        config = get_config()

        assert isinstance(context, AppContext)
        assert isinstance(config, ConfigData)
        assert context.config is config

    def test_override_and_restore(self):
        original_config = get_config()

        override = ConfigData()
        override.registry.store = "memory"
        override.registry.max_royalty_percent = 50

        with with_context(override):
            config = get_config()
            assert config.registry.store == "memory"
            assert config.registry.max_royalty_percent == 50
            assert config is not original_config

        assert get_config() is original_config

    def test_nested_overrides_inherit(self):
        outer = ConfigData()
        outer.registry.isbn_min_length = 10
        outer.app.port = 8001

        with with_context(outer):
            inner = ConfigData()
            inner.registry.max_royalty_percent = 25

            with with_context(inner):
                config = get_config()
                assert config.registry.isbn_min_length == 10
                assert config.registry.max_royalty_percent == 25
                assert config.app.port == 8001

            assert get_config().registry.max_royalty_percent == 100

    def test_no_override(self):
        original_config = get_config()

        with with_context():
            assert get_config() is original_config

    def test_restored_after_exception(self):
        original_config = get_config()
        override = ConfigData()
        override.database.url = "sqlite://"

        with pytest.raises(ValueError):
            with with_context(override):
                assert get_config().database.url == "sqlite://"
                raise ValueError("boom")

        assert get_config() is original_config

    def test_rejects_non_config(self):
        with pytest.raises(ValueError):
            with with_context({"registry": {"store": "memory"}}):
                pass

    def test_assigned_nested_model_replaces_section(self):
        base = ConfigData()
        base.jwt.clock_skew = 5
        override = ConfigData()
        override.jwt = ConfigData().jwt

        merged = merge_configs(base, override)

        assert merged.jwt.clock_skew == 60

    def test_unset_fields_do_not_override(self):
        base = ConfigData()
        base.registry.store = "memory"

        merged = merge_configs(base, ConfigData())

        assert merged.registry.store == "memory"


class TestContextIsolation:
    """Overrides are visible only to the thread or task that made them."""

    def test_thread_isolation(self):
        def read_store(store: str) -> str:
            override = ConfigData()
            override.registry.store = store
            with with_context(override):
                return get_config().registry.store

        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(read_store, ["memory", "sql"] * 4))

        assert results == ["memory", "sql"] * 4

    def test_async_task_isolation(self):
        async def read_limit(limit: int) -> int:
            override = ConfigData()
            override.registry.max_royalty_percent = limit
            with with_context(override):
                await asyncio.sleep(0)
                return get_config().registry.max_royalty_percent

        async def main() -> list[int]:
            return await asyncio.gather(*(read_limit(n) for n in range(10, 60, 10)))

        assert asyncio.run(main()) == [10, 20, 30, 40, 50]
