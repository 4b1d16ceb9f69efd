"""ResourceLoader: load each external dependency at most once.

Replaces a global preloader with an injectable object. Each named
resource has a factory; concurrent ``get()`` calls share one in-flight
load, successful results are cached, and failed loads are forgotten so
the next ``get()`` retries on demand.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from collections.abc import Callable
from typing import Any


logger = logging.getLogger(__name__)

# Factories return the resource or an awaitable of it
Factory = Callable[[], Any]


class ResourceLoadError(RuntimeError):
    """Raised for a resource name with no registered factory."""


class ResourceLoader:
    """Cache of lazily loaded, shared resources.

    Usage::

        loader = ResourceLoader()
        loader.register("fasttree", FastTreeBuilder.locate)
        await loader.preload_all()
        builder = await loader.get("fasttree")
    """

    def __init__(self) -> None:
        self._factories: dict[str, Factory] = {}
        self._loaded: dict[str, Any] = {}
        self._inflight: dict[str, asyncio.Task] = {}

    def register(self, name: str, factory: Factory) -> None:
        """Register (or replace) the factory for a resource."""
        self._factories[name] = factory
        self._loaded.pop(name, None)

    @property
    def names(self) -> list[str]:
        return list(self._factories)

    def is_loaded(self, name: str) -> bool:
        return name in self._loaded

    async def get(self, name: str) -> Any:
        """Return the resource, loading it if needed.

        Raises whatever the factory raised; the failure is not cached.
        """
        if name in self._loaded:
            return self._loaded[name]
        if name not in self._factories:
            raise ResourceLoadError(
                f"No loader registered for '{name}'. Registered: {self.names}"
            )
        task = self._inflight.get(name)
        if task is None:
            task = asyncio.ensure_future(self._load(name))
            self._inflight[name] = task
        return await asyncio.shield(task)

    async def _load(self, name: str) -> Any:
        logger.info("Loading %s", name)
        try:
            result = self._factories[name]()
            if inspect.isawaitable(result):
                result = await result
        except Exception:
            logger.warning("Failed to load %s; will retry on demand", name, exc_info=True)
            raise
        else:
            self._loaded[name] = result
            logger.info("Loaded %s", name)
            return result
        finally:
            self._inflight.pop(name, None)

    async def preload_all(self) -> dict[str, bool]:
        """Load every registered resource concurrently.

        Individual failures are logged, not raised. Returns which
        resources loaded successfully.
        """
        start = time.perf_counter()
        names = self.names
        results = await asyncio.gather(
            *(self.get(name) for name in names), return_exceptions=True,
        )
        status = {
            name: not isinstance(result, BaseException)
            for name, result in zip(names, results)
        }
        elapsed = (time.perf_counter() - start) * 1000
        if all(status.values()):
            logger.info("Preloaded %d resources in %.2fms", len(names), elapsed)
        elif any(status.values()):
            failed = [n for n, ok in status.items() if not ok]
            logger.warning(
                "Partial preload in %.2fms; on-demand loading for: %s", elapsed, failed,
            )
        else:
            logger.error("All preloads failed; resources will load on demand")
        return status

    def loading_status(self) -> dict[str, bool]:
        """Per-resource loaded flags plus an ``all`` summary."""
        status = {name: self.is_loaded(name) for name in self._factories}
        status["all"] = all(status.values())
        return status
