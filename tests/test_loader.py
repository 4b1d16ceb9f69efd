"""Tests for ResourceLoader caching and retry behaviour."""

import asyncio

import pytest

from phylo_explorer.services.loader import ResourceLoadError, ResourceLoader


class CountingFactory:
    def __init__(self, fail_times=0):
        self.calls = 0
        self.fail_times = fail_times

    async def __call__(self):
        self.calls += 1
        await asyncio.sleep(0)
        if self.calls <= self.fail_times:
            raise OSError("not available yet")
        return f"resource-{self.calls}"


class TestGet:
    def test_sync_factory(self):
        loader = ResourceLoader()
        loader.register("builder", lambda: "ready")
        assert asyncio.run(loader.get("builder")) == "ready"
        assert loader.is_loaded("builder")

    def test_result_is_cached(self):
        factory = CountingFactory()
        loader = ResourceLoader()
        loader.register("builder", factory)

        async def run():
            first = await loader.get("builder")
            second = await loader.get("builder")
            return first, second

        assert asyncio.run(run()) == ("resource-1", "resource-1")
        assert factory.calls == 1

    def test_concurrent_gets_share_one_load(self):
        factory = CountingFactory()
        loader = ResourceLoader()
        loader.register("builder", factory)

        async def run():
            return await asyncio.gather(*(loader.get("builder") for _ in range(5)))

        assert asyncio.run(run()) == ["resource-1"] * 5
        assert factory.calls == 1

    def test_failure_is_retried_on_demand(self):
        factory = CountingFactory(fail_times=1)
        loader = ResourceLoader()
        loader.register("builder", factory)

        async def run():
            with pytest.raises(OSError):
                await loader.get("builder")
            assert not loader.is_loaded("builder")
            return await loader.get("builder")

        assert asyncio.run(run()) == "resource-2"
        assert factory.calls == 2

    def test_unknown_name(self):
        loader = ResourceLoader()
        with pytest.raises(ResourceLoadError, match="No loader registered"):
            asyncio.run(loader.get("missing"))

    def test_register_replaces_cached_value(self):
        loader = ResourceLoader()
        loader.register("builder", lambda: "old")
        asyncio.run(loader.get("builder"))
        loader.register("builder", lambda: "new")
        assert not loader.is_loaded("builder")
        assert asyncio.run(loader.get("builder")) == "new"


class TestPreload:
    def test_reports_per_resource_status(self):
        loader = ResourceLoader()
        loader.register("good", lambda: 1)
        loader.register("bad", CountingFactory(fail_times=1))
        status = asyncio.run(loader.preload_all())
        assert status == {"good": True, "bad": False}
        assert loader.loading_status() == {"good": True, "bad": False, "all": False}

    def test_all_loaded(self):
        loader = ResourceLoader()
        loader.register("a", lambda: 1)
        loader.register("b", CountingFactory())
        assert asyncio.run(loader.preload_all()) == {"a": True, "b": True}
        assert loader.loading_status()["all"]

    def test_empty_loader(self):
        loader = ResourceLoader()
        assert asyncio.run(loader.preload_all()) == {}
        assert loader.loading_status() == {"all": True}
