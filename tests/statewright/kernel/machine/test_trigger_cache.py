from __future__ import annotations

import threading

import pytest

from statewright.kernel.exceptions import ResolveError, TriggerError
from statewright.kernel.machine.trigger_cache import TriggerCache
from statewright.kernel.resolver import ComponentRegistry
from statewright.stdlib.triggers import LogTransitionTrigger


class TestTriggerCache:
    def test_unregistered_transition(self, registry: ComponentRegistry) -> None:
        cache = TriggerCache(registry, {})
        assert cache.get("open") is None
        assert len(cache) == 0

    def test_get_creates_once(self, registry: ComponentRegistry) -> None:
        cache = TriggerCache(registry, {"close": "log"})
        first = cache.get("close")
        assert isinstance(first, LogTransitionTrigger)
        assert cache.get("close") is first
        assert "close" in cache

    def test_load_all(self, registry: ComponentRegistry, make_recorder) -> None:
        registry.register_trigger("audit", make_recorder)
        cache = TriggerCache(registry, {"open": "audit", "close": "log"})
        cache.load_all()
        assert len(cache) == 2

    def test_clear_rebuilds(self, registry: ComponentRegistry) -> None:
        cache = TriggerCache(registry, {"close": "log"})
        first = cache.get("close")
        cache.clear()
        assert "close" not in cache
        assert cache.get("close") is not first

    def test_identifiers_are_read_only(self, registry: ComponentRegistry) -> None:
        cache = TriggerCache(registry, {"close": "log"})
        with pytest.raises(TypeError):
            cache.identifiers["open"] = "log"  # type: ignore[index]

    def test_unknown_identifier(self, registry: ComponentRegistry) -> None:
        cache = TriggerCache(registry, {"close": "nope"})
        with pytest.raises(TriggerError, match="transition 'close'") as exc_info:
            cache.get("close")
        assert isinstance(exc_info.value.causes[0], ResolveError)

    def test_missing_hook_method(self, registry: ComponentRegistry) -> None:
        registry.register_trigger("inert", object)
        cache = TriggerCache(registry, {"open": "inert"})
        with pytest.raises(TriggerError) as exc_info:
            cache.load_all()
        assert "on_transition" in str(exc_info.value.causes[0])
        assert "open" not in cache

    def test_concurrent_get(self, registry: ComponentRegistry, make_recorder) -> None:
        created = []

        def factory():
            created.append(make_recorder())
            return created[-1]

        registry.register_trigger("counting", factory)
        cache = TriggerCache(registry, {"open": "counting"})
        results = []
        threads = [
            threading.Thread(target=lambda: results.append(cache.get("open"))) for _ in range(8)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(created) == 1
        assert all(result is created[0] for result in results)
