"""Composable, scoped, reversible method interception.

A PatchScope owns the wrappers one feature installs. Wrappers always call
whatever occupied the slot when they were installed, so scopes patching the
same method nest (latest outermost) and the real method still runs once.

    scope = create_scope("picture-link")
    scope.after(header_module, "default", on_render)
    ...
    scope.unpatch_all()

Callback signatures (this_arg is the patched target):
    before(this_arg, args)            -> replacement args or None
    after(this_arg, args, result)     -> replacement result or None
    instead(this_arg, args, original) -> result

A failing callback is logged and the call falls back to unpatched
behavior for that wrapper. Exceptions raised by the wrapped method itself
propagate unchanged.
"""
from __future__ import annotations

import functools
import inspect
import logging
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass, field
from typing import Any, Callable, List

from augment.errors import Unpatchable
from augment.events import (
    PatchCallbackFailed,
    PatchInstalled,
    PatchReverted,
    emit,
)

logger = logging.getLogger(__name__)

_MISSING = object()
_RECORD_ATTR = "__augment_patch__"

@dataclass(eq=False)
class PatchRecord:
    scope: str
    target: Any
    method: str
    kind: str
    previous: Callable[..., Any]
    prior_slot: Any = _MISSING
    wrapper: Callable[..., Any] | None = None
    installed: Any = None
    active: bool = True
    reverted: bool = False
    failures: int = field(default=0)

    @property
    def target_name(self) -> str:
        return _describe(self.target)


def _describe(target: Any) -> str:
    name = getattr(target, "__name__", None)
    if isinstance(name, str):
        return name
    return type(target).__name__


# --- slot access (mapping or attribute targets) ------------------------------

def _own_slot(target: Any, name: str) -> Any:
    """Raw value stored on the target itself, _MISSING when inherited/absent."""
    if isinstance(target, Mapping):
        return target.get(name, _MISSING)
    try:
        return vars(target).get(name, _MISSING)
    except TypeError:  # no __dict__ (slots, builtins)
        return _MISSING


def _current(target: Any, name: str) -> Any:
    if isinstance(target, Mapping):
        return target[name]
    return getattr(target, name)


def _write_slot(target: Any, name: str, value: Any) -> None:
    if isinstance(target, MutableMapping):
        target[name] = value
    else:
        setattr(target, name, value)


def _delete_slot(target: Any, name: str) -> None:
    if isinstance(target, MutableMapping):
        target.pop(name, None)
    else:
        delattr(target, name)


def _record_of(value: Any) -> PatchRecord | None:
    if isinstance(value, (staticmethod, classmethod)):
        value = value.__func__
    return getattr(value, _RECORD_ATTR, None)


def _needs_static(target: Any, name: str) -> bool:
    """Class slots whose lookup already yields a ready callable."""
    if not isinstance(target, type):
        return False
    raw = inspect.getattr_static(target, name, None)
    return isinstance(raw, (staticmethod, classmethod))


# --- wrappers ----------------------------------------------------------------

def _callback_failed(record: PatchRecord, exc: Exception) -> None:
    record.failures += 1
    logger.warning(
        "patch callback failed scope=%s method=%s.%s kind=%s: %s",
        record.scope,
        record.target_name,
        record.method,
        record.kind,
        exc,
        exc_info=True,
    )
    emit(
        PatchCallbackFailed(
            scope=record.scope,
            method=f"{record.target_name}.{record.method}",
            kind=record.kind,
            message=str(exc),
        )
    )


def _make_wrapper(
    record: PatchRecord, callback: Callable[..., Any]
) -> Callable[..., Any]:
    previous = record.previous

    def _before(*args: Any, **kwargs: Any) -> Any:
        try:
            new_args = callback(record.target, args)
            if new_args is not None and not isinstance(new_args, (list, tuple)):
                raise TypeError(
                    f"before callback must return a list or tuple of args, "
                    f"got {type(new_args).__name__}"
                )
        except Exception as e:  # noqa: BLE001
            _callback_failed(record, e)
            new_args = None
        if new_args is not None:
            args = tuple(new_args)
        return previous(*args, **kwargs)

    def _after(*args: Any, **kwargs: Any) -> Any:
        result = previous(*args, **kwargs)
        try:
            replaced = callback(record.target, args, result)
        except Exception as e:  # noqa: BLE001
            _callback_failed(record, e)
            return result
        return result if replaced is None else replaced

    def _instead(*args: Any, **kwargs: Any) -> Any:
        state: dict[str, Any] = {}

        def original(*a: Any, **kw: Any) -> Any:
            state["called"] = True
            try:
                state["result"] = previous(*a, **{**kwargs, **kw})
            except Exception as host_exc:
                state["host_exc"] = host_exc
                raise
            return state["result"]

        try:
            return callback(record.target, args, original)
        except Exception as e:  # noqa: BLE001
            if e is state.get("host_exc"):
                raise
            _callback_failed(record, e)
            if state.get("called"):
                return state.get("result")
            return previous(*args, **kwargs)

    body = {"before": _before, "after": _after, "instead": _instead}[
        record.kind
    ]

    @functools.wraps(previous)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        if not record.active:
            return previous(*args, **kwargs)
        return body(*args, **kwargs)

    setattr(wrapper, _RECORD_ATTR, record)
    return wrapper


def _skip_dead(value: Any) -> Any:
    """Walk past wrappers whose scope already reverted them."""
    rec = _record_of(value)
    while rec is not None and not rec.active:
        value = rec.prior_slot
        rec = _record_of(value)
    return value


# --- scope -------------------------------------------------------------------

class PatchScope:
    def __init__(self, name: str):
        self.name = name
        self._records: List[PatchRecord] = []

    def __repr__(self) -> str:  # pragma: no cover
        return f"PatchScope({self.name!r}, patches={len(self._records)})"

    def __len__(self) -> int:
        return len(self._records)

    def before(
        self, target: Any, method: str, callback: Callable[..., Any]
    ) -> Callable[[], None]:
        return self._install(target, method, "before", callback)

    def after(
        self, target: Any, method: str, callback: Callable[..., Any]
    ) -> Callable[[], None]:
        return self._install(target, method, "after", callback)

    def instead(
        self, target: Any, method: str, callback: Callable[..., Any]
    ) -> Callable[[], None]:
        return self._install(target, method, "instead", callback)

    def _install(
        self,
        target: Any,
        method: str,
        kind: str,
        callback: Callable[..., Any],
    ) -> Callable[[], None]:
        if target is None:
            raise Unpatchable(f"{self.name}: target for '{method}' is None")
        try:
            previous = _current(target, method)
        except (AttributeError, KeyError):
            raise Unpatchable(
                f"{self.name}: {_describe(target)} has no '{method}'"
            ) from None
        if not callable(previous):
            raise Unpatchable(
                f"{self.name}: {_describe(target)}.{method} is not callable"
            )
        record = PatchRecord(
            scope=self.name,
            target=target,
            method=method,
            kind=kind,
            previous=previous,
            prior_slot=_own_slot(target, method),
        )
        wrapper = _make_wrapper(record, callback)
        installed: Any = wrapper
        if _needs_static(target, method):
            installed = staticmethod(wrapper)
        try:
            _write_slot(target, method, installed)
        except (AttributeError, TypeError) as e:
            raise Unpatchable(
                f"{self.name}: cannot rebind {_describe(target)}.{method}: {e}"
            ) from e
        record.wrapper = wrapper
        record.installed = installed
        self._records.append(record)
        emit(
            PatchInstalled(
                scope=self.name,
                target=record.target_name,
                method=method,
                kind=kind,
            )
        )
        return functools.partial(self._revert_one, record)

    def _revert_one(self, record: PatchRecord) -> None:
        try:
            self._revert(record)
        except Exception:  # noqa: BLE001
            logger.exception(
                "unpatch failed scope=%s method=%s", self.name, record.method
            )
        if record in self._records:
            self._records.remove(record)

    def _revert(self, record: PatchRecord) -> None:
        if record.reverted:
            return
        record.active = False
        record.reverted = True
        if _own_slot(record.target, record.method) is record.installed:
            restore = _skip_dead(record.prior_slot)
            if restore is _MISSING:
                _delete_slot(record.target, record.method)
            else:
                _write_slot(record.target, record.method, restore)
            mode = "rebound"
        else:
            # Someone wrapped on top of us (or the host replaced the slot);
            # leave their reference alone, ours is now a pass-through.
            mode = "deactivated"
        emit(
            PatchReverted(
                scope=self.name,
                target=record.target_name,
                method=record.method,
                mode=mode,
            )
        )

    def unpatch_all(self) -> int:
        """Revert every record, newest first. Never raises; idempotent."""
        reverted = 0
        for record in reversed(self._records):
            try:
                self._revert(record)
                reverted += 1
            except Exception:  # noqa: BLE001
                logger.exception(
                    "unpatch failed scope=%s method=%s.%s",
                    self.name,
                    record.target_name,
                    record.method,
                )
        self._records.clear()
        return reverted


def create_scope(name: str) -> PatchScope:
    return PatchScope(name)


__all__ = ["PatchScope", "PatchRecord", "create_scope"]
