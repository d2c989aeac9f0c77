"""Host application contract.

Everything the plugin needs from the application it augments goes through
this interface. Implementations adapt the real host; tests use fakes.
Implementations must not do heavy work on construction.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Protocol

from augment.registry import ModuleRegistry


class SettingsStore(Protocol):  # pragma: no cover
    def get(self, key: str, default: Any = None) -> Any:
        ...

    def set(self, key: str, value: Any) -> None:
        ...


class InMemorySettings:
    """Dict-backed settings store (host-less runs and tests)."""

    def __init__(self, values: Dict[str, Any] | None = None):
        self._values: Dict[str, Any] = dict(values or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value


@dataclass(frozen=True)
class MenuItem:
    id: str
    label: str
    action: Callable[[], None]


@dataclass(frozen=True)
class Menu:
    items: List[MenuItem]
    on_close: Callable[[], None] | None = None

    def item(self, item_id: str) -> MenuItem:
        for it in self.items:
            if it.id == item_id:
                return it
        raise KeyError(item_id)


@dataclass(frozen=True)
class PreviewRequest:
    """What the preview surface is asked to show.

    component / class_name come from host modules discovered at open time.
    modal_props carries whatever the host passed to the modal render call.
    """
    src: str
    width: int
    height: int
    animated: bool = True
    autoplay: bool = True
    component: Any = None
    class_name: str | None = None
    modal_props: Dict[str, Any] = field(default_factory=dict)


class Host(ABC):
    @property
    @abstractmethod
    def registry(self) -> ModuleRegistry:
        """Live module registry of the host."""

    @property
    @abstractmethod
    def settings(self) -> SettingsStore:
        """Key-value store owned by the host, keyed by option name."""

    @abstractmethod
    def open_modal(self, render: Callable[[Dict[str, Any]], Any]) -> Any:
        """Open an overlay; render(modal_props) builds its content."""

    @abstractmethod
    def open_context_menu(self, event: Any, render: Callable[[], Menu]) -> None:
        ...

    @abstractmethod
    def close_context_menu(self) -> None:
        ...

    @abstractmethod
    def open_external(self, url: str) -> None:
        """Hand a URL to the system browser."""

    @abstractmethod
    def write_clipboard(self, text: str) -> None:
        ...

    @abstractmethod
    def append_style(self, style_id: str, css: str) -> Any:
        """Inject a stylesheet; returns a handle for remove_style."""

    @abstractmethod
    def remove_style(self, handle: Any) -> None:
        ...


__all__ = [
    "Host",
    "SettingsStore",
    "InMemorySettings",
    "Menu",
    "MenuItem",
    "PreviewRequest",
]
