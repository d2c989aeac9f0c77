"""In-process stand-in for the host's dynamic module registry.

Entries are opaque `exports` objects. Identity is irrelevant to callers;
discovery matches on shape (see augment.locator).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from threading import RLock
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from augment import metrics
from augment.errors import RegistryError

logger = logging.getLogger(__name__)

LoadListener = Callable[[str, Any], None]


@dataclass(frozen=True)
class LazyEntry:
    module_id: str
    factory: Callable[[], Any]


class _LazyState:
    __slots__ = ("entry", "exports", "loaded")

    def __init__(self, entry: LazyEntry):
        self.entry = entry
        self.exports: Any | None = None
        self.loaded = False

    def get(self) -> Any:
        if not self.loaded:
            self.exports = self.entry.factory()
            self.loaded = True
        return self.exports


class ModuleRegistry:
    def __init__(self) -> None:
        self._loaded: Dict[str, Any] = {}
        self._lazy: Dict[str, _LazyState] = {}
        self._listeners: List[LoadListener] = []
        self._lock = RLock()

    # --- population (host side) --------------------------------------------
    def register(self, module_id: str, exports: Any) -> Any:
        with self._lock:
            if module_id in self._loaded:
                raise RegistryError(f"Duplicate module id: {module_id}")
            self._loaded[module_id] = exports
            self._lazy.pop(module_id, None)
            listeners = list(self._listeners)
        logger.debug("registry: loaded %s", module_id)
        for fn in listeners:
            try:
                fn(module_id, exports)
            except Exception:  # noqa: BLE001
                metrics.inc("registry_listener_errors_total")
                logger.exception("registry listener failed for %s", module_id)
        return exports

    def define_lazy(self, module_id: str, factory: Callable[[], Any]) -> None:
        with self._lock:
            if module_id in self._loaded or module_id in self._lazy:
                raise RegistryError(f"Duplicate module id: {module_id}")
            self._lazy[module_id] = _LazyState(LazyEntry(module_id, factory))

    def require(self, module_id: str) -> Any:
        """Load (once) and return an entry, lazy or not."""
        with self._lock:
            if module_id in self._loaded:
                return self._loaded[module_id]
            state = self._lazy.get(module_id)
            if state is None:
                raise RegistryError(f"Unknown module id: {module_id}")
            exports = state.get()
        return self.register(module_id, exports)

    # --- queries -------------------------------------------------------------
    def entries(self) -> Iterator[Tuple[str, Any]]:
        with self._lock:
            snapshot = list(self._loaded.items())
        return iter(snapshot)

    def pending(self) -> list[str]:
        with self._lock:
            return list(self._lazy.keys())

    def find(self, match: Callable[[Any], bool]) -> Optional[Any]:
        """First loaded exports object accepted by `match` (linear scan)."""
        for _, exports in self.entries():
            try:
                if match(exports):
                    return exports
            except Exception:  # noqa: BLE001
                # Shape probes against foreign modules must not abort a scan.
                continue
        return None

    def __len__(self) -> int:
        with self._lock:
            return len(self._loaded)

    def __contains__(self, module_id: object) -> bool:
        with self._lock:
            return module_id in self._loaded

    # --- load notifications --------------------------------------------------
    def add_listener(self, fn: LoadListener) -> None:
        with self._lock:
            self._listeners.append(fn)

    def remove_listener(self, fn: LoadListener) -> None:
        with self._lock:
            try:
                self._listeners.remove(fn)
            except ValueError:
                pass

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)


__all__ = ["ModuleRegistry", "LazyEntry", "LoadListener"]
