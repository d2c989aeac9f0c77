"""User-facing options and the declarative settings panel."""
from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field

from picture_link.host import SettingsStore


class PictureLinkSettings(BaseModel):
    open_in_browser: bool = Field(
        False,
        alias="openInBrowser",
        title="Open in browser",
        description=(
            "Open avatars and banners in the system browser instead of "
            "the in-app preview."
        ),
    )

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @classmethod
    def from_store(
        cls, store: SettingsStore, default_open_in_browser: bool = False
    ) -> "PictureLinkSettings":
        """Read current values; the store is keyed by option alias."""
        data: Dict[str, Any] = {}
        for name, field in cls.model_fields.items():
            key = field.alias or name
            fallback = (
                default_open_in_browser
                if name == "open_in_browser"
                else field.default
            )
            data[key] = store.get(key, fallback)
        return cls.model_validate(data)


def settings_panel(
    store: SettingsStore, default_open_in_browser: bool = False
) -> List[Dict[str, Any]]:
    """Declarative descriptor consumed by the host's settings UI."""
    current = PictureLinkSettings.from_store(store, default_open_in_browser)
    panel: List[Dict[str, Any]] = []
    for name, field in PictureLinkSettings.model_fields.items():
        panel.append(
            {
                "type": "switch",
                "id": field.alias or name,
                "name": field.title or name,
                "note": field.description or "",
                "value": getattr(current, name),
            }
        )
    return panel


__all__ = ["PictureLinkSettings", "settings_panel"]
