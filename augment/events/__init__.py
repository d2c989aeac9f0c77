"""Lifecycle / patch event dataclasses + any-subscriber bridge.

Per-event subscriptions go through `augment.eventbus`; `on(handler)` here
receives every event as handler(name, payload). The built-in metrics
collector is always subscribed.
"""
from __future__ import annotations

from dataclasses import dataclass, asdict
from time import time
from typing import Any, Callable, Dict, List

from augment import metrics as _metrics
from augment.eventbus import emit as _emit_bus

EventHandler = Callable[[str, Dict[str, Any]], None]


@dataclass(slots=True)
class BaseEvent:
    def to_event(self) -> Dict[str, Any]:  # noqa: D401
        data = asdict(self)
        data["ts"] = data.get("ts") or time()
        return data


@dataclass(slots=True)
class FeatureStarted(BaseEvent):
    feature: str
    routines: int


@dataclass(slots=True)
class FeatureStopped(BaseEvent):
    feature: str
    reverted: int
    state_before: str


@dataclass(slots=True)
class PatchInstalled(BaseEvent):
    scope: str
    target: str
    method: str
    kind: str  # before|after|instead


@dataclass(slots=True)
class PatchReverted(BaseEvent):
    scope: str
    target: str
    method: str
    mode: str  # rebound|deactivated|gone


@dataclass(slots=True)
class PatchCallbackFailed(BaseEvent):
    scope: str
    method: str
    kind: str
    message: str | None = None


@dataclass(slots=True)
class FeatureSkipped(BaseEvent):
    """A discovery routine gave up (module missing, method unpatchable)."""
    feature: str
    routine: str
    error_type: str
    message: str | None = None


@dataclass(slots=True)
class DiscoveryDiscarded(BaseEvent):
    """Discovery resolved after stop(); result dropped, nothing installed."""
    feature: str
    routine: str


_ANY_SUBS: List[EventHandler] = []


def _metrics_collector(
    name: str, payload: Dict[str, Any]
) -> None:  # noqa: D401
    if name == "PatchInstalled":
        _metrics.inc(
            "patches_installed_total", {"scope": payload.get("scope")}
        )
    elif name == "PatchReverted":
        _metrics.inc(
            "patches_reverted_total",
            {"scope": payload.get("scope"), "mode": payload.get("mode")},
        )
    elif name == "PatchCallbackFailed":
        _metrics.inc(
            "patch_callback_errors_total",
            {
                "scope": payload.get("scope"),
                "method": payload.get("method"),
            },
        )
    elif name == "FeatureSkipped":
        _metrics.inc_error(payload.get("error_type", "feature-internal"))
    elif name == "DiscoveryDiscarded":
        _metrics.inc(
            "discovery_discarded_total", {"feature": payload.get("feature")}
        )


_ANY_SUBS.append(_metrics_collector)


def emit(ev: BaseEvent) -> None:
    name = ev.__class__.__name__
    payload = ev.to_event()
    _emit_bus(name, payload)
    for h in list(_ANY_SUBS):  # copy for isolation
        try:
            h(name, dict(payload))
        except Exception:  # noqa: BLE001
            _metrics.inc("handler_exceptions_total", {"event": name})


def on(handler: EventHandler) -> Callable[[], None]:
    _ANY_SUBS.append(handler)

    def _unsub() -> None:  # noqa: D401
        try:
            _ANY_SUBS.remove(handler)
        except ValueError:
            pass
    return _unsub


def reset_listeners_for_tests() -> None:  # pragma: no cover
    _ANY_SUBS.clear()
    _ANY_SUBS.append(_metrics_collector)


__all__ = [
    "emit",
    "on",
    "BaseEvent",
    "FeatureStarted",
    "FeatureStopped",
    "PatchInstalled",
    "PatchReverted",
    "PatchCallbackFailed",
    "FeatureSkipped",
    "DiscoveryDiscarded",
    "reset_listeners_for_tests",
]
