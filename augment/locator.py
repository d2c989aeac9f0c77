"""Shape-based module discovery over a ModuleRegistry.

Host module boundaries move between versions, so nothing here matches by
id. A ModuleFilter probes one exports object and either selects something
from it (the module itself or its `default` export) or returns None.

    locator = ModuleLocator(registry)
    classes = locator.resolve_sync(by_props("modal", "image"))
    header = await locator.resolve_async(
        by_display_name("UserProfileModalHeader", default=False), token
    )
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Sequence

from augment.errors import CancellationRace, NotFound
from augment.lifecycle import CancellationToken
from augment.registry import ModuleRegistry
from augment.tree import get_path

logger = logging.getLogger(__name__)

Probe = Callable[[Any], Any]


@dataclass(frozen=True)
class ModuleFilter:
    description: str
    probe: Probe

    def select(self, exports: Any) -> Any | None:
        """Selected export for a matching module, else None."""
        try:
            return self.probe(exports)
        except Exception:  # noqa: BLE001
            return None

    def matches(self, exports: Any) -> bool:
        return self.select(exports) is not None

    def __str__(self) -> str:  # noqa: D401
        return self.description


def _has_props(obj: Any, props: Sequence[str]) -> bool:
    return obj is not None and all(
        get_path(obj, p) is not None for p in props
    )


def by_props(*props: str, default: bool = False) -> ModuleFilter:
    """Module (or its default export) defining every name in `props`.

    With default=True the default export is selected even when the props
    live on the module itself and a default export exists.
    """
    if not props:
        raise ValueError("by_props needs at least one property name")

    def _probe(exports: Any) -> Any | None:
        inner = get_path(exports, "default")
        if _has_props(exports, props):
            return inner if default and inner is not None else exports
        if _has_props(inner, props):
            return inner
        return None

    return ModuleFilter(f"by_props({', '.join(props)})", _probe)


def by_display_name(name: str, default: bool = True) -> ModuleFilter:
    """Component whose displayName equals `name`.

    default=True selects the component itself; default=False selects the
    module that exposes it as `default`, which is what patching needs.
    """

    def _probe(exports: Any) -> Any | None:
        if get_path(exports, "displayName") == name:
            return exports
        inner = get_path(exports, "default")
        if get_path(inner, "displayName") == name:
            return inner if default else exports
        return None

    return ModuleFilter(f"by_display_name({name!r})", _probe)


def by_predicate(fn: Callable[[Any], bool], description: str) -> ModuleFilter:
    return ModuleFilter(description, lambda m: m if fn(m) else None)


class ModuleLocator:
    def __init__(self, registry: ModuleRegistry):
        self._registry = registry

    @property
    def registry(self) -> ModuleRegistry:
        return self._registry

    def resolve_sync(self, flt: ModuleFilter) -> Any:
        """One scan over loaded entries; raises NotFound when unmatched."""
        exports = self._registry.find(flt.matches)
        if exports is None:
            raise NotFound(f"No module matches {flt}", details={"filter": str(flt)})
        return flt.select(exports)

    def resolve_batch(self, filters: Sequence[ModuleFilter]) -> List[Any]:
        """All-or-nothing resolution of several filters in a single scan."""
        remaining = dict(enumerate(filters))
        found: dict[int, Any] = {}
        for _, exports in self._registry.entries():
            if not remaining:
                break
            for idx in list(remaining):
                selected = remaining[idx].select(exports)
                if selected is not None:
                    found[idx] = selected
                    del remaining[idx]
        if remaining:
            missing = [str(f) for f in remaining.values()]
            raise NotFound(
                f"Unresolved filters: {', '.join(missing)}",
                details={"missing": missing},
            )
        return [found[i] for i in range(len(filters))]

    async def resolve_async(
        self, flt: ModuleFilter, token: CancellationToken
    ) -> Any:
        """Wait until a matching module is loaded.

        Resolves at most once. Raises CancellationRace if the token is
        cancelled before or while waiting, or by the time we resume.
        """
        if token.cancelled:
            raise CancellationRace(f"cancelled before lookup of {flt}")
        try:
            return self.resolve_sync(flt)
        except NotFound:
            pass

        loop = asyncio.get_running_loop()
        fut: asyncio.Future[Any] = loop.create_future()

        def _on_load(module_id: str, exports: Any) -> None:
            if fut.done():
                return
            selected = flt.select(exports)
            if selected is not None:
                logger.debug("locator: %s resolved by %s", flt, module_id)
                fut.set_result(selected)

        def _on_cancel() -> None:
            if not fut.done():
                fut.cancel()

        self._registry.add_listener(_on_load)
        release = token.add_callback(_on_cancel)
        try:
            result = await fut
        except asyncio.CancelledError:
            if token.cancelled:
                raise CancellationRace(
                    f"cancelled while waiting for {flt}"
                ) from None
            raise
        finally:
            self._registry.remove_listener(_on_load)
            release()
        if token.cancelled:
            raise CancellationRace(f"{flt} resolved after cancellation")
        return result


__all__ = [
    "ModuleFilter",
    "ModuleLocator",
    "by_props",
    "by_display_name",
    "by_predicate",
]
