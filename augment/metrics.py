"""Minimal in-memory metrics collector.

Purpose:
    - Counters and simple latency samples so silent degradation of an
      augmentation feature is still observable.
    - Zero external deps.

Core API (intentionally tiny):
    inc(name, labels=None, value=1)
    observe(name, value, labels=None)
    snapshot() -> dict (copy for safe reading)

Metric names used by the core (documented for discoverability):
    - patches_installed_total{scope}
    - patches_reverted_total{scope,mode}
    - patch_callback_errors_total{scope,method}
    - discovery_discarded_total{feature}
    - augment_errors_total{error_type}
    - tree_search_visited{outcome}           (histogram)
    - registry_listener_errors_total
    - events_emitted_total{event}, handler_exceptions_total{event}
    - env_override_total{path}, config_validation_errors_total{code}
"""
from __future__ import annotations

from threading import RLock
from time import time
from typing import Dict, Tuple, Any

_COUNTERS: Dict[Tuple[str, Tuple[Tuple[str, str], ...]], float] = {}
_HIST: Dict[Tuple[str, Tuple[Tuple[str, str], ...]], list] = {}
_LOCK = RLock()


def _norm_labels(labels: dict[str, Any] | None) -> Tuple[Tuple[str, str], ...]:
    if not labels:
        return tuple()
    return tuple(sorted((str(k), str(v)) for k, v in labels.items()))


def _key_str(name: str, labels: Tuple[Tuple[str, str], ...]) -> str:
    if not labels:
        return name
    return name + "{" + ",".join(f"{k}={v}" for k, v in labels) + "}"


def inc(
    name: str,
    labels: dict[str, Any] | None = None,
    value: float = 1.0,
) -> None:
    key = (name, _norm_labels(labels))
    with _LOCK:
        _COUNTERS[key] = _COUNTERS.get(key, 0.0) + value


def observe(
    name: str,
    value: float,
    labels: dict[str, Any] | None = None,
) -> None:
    key = (name, _norm_labels(labels))
    with _LOCK:
        _HIST.setdefault(key, []).append(value)


def snapshot() -> dict[str, Any]:
    with _LOCK:
        counters = {
            _key_str(name, labels): v
            for (name, labels), v in _COUNTERS.items()
        }
        hist = {}
        for (name, labels), vals in _HIST.items():
            if not vals:
                continue
            hist[_key_str(name, labels)] = {
                "count": len(vals),
                "min": min(vals),
                "max": max(vals),
                "p50": sorted(vals)[len(vals) // 2],
                "last": vals[-1],
            }
        return {
            "ts": time(),
            "counters": counters,
            "histograms": hist,
        }


def counter_value(name: str, labels: dict[str, Any] | None = None) -> float:
    with _LOCK:
        return _COUNTERS.get((name, _norm_labels(labels)), 0.0)


def reset_for_tests() -> None:  # pragma: no cover
    with _LOCK:
        _COUNTERS.clear()
        _HIST.clear()


__all__ = [
    "inc",
    "observe",
    "snapshot",
    "counter_value",
    "reset_for_tests",
]


# ------------------- Helper wrappers -------------------

def inc_error(error_type: str) -> None:
    """Count an absorbed failure by taxonomy code (see augment.errors)."""
    if error_type:
        inc("augment_errors_total", {"error_type": error_type})


__all__ += ["inc_error"]
