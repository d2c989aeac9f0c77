"""Click and context-menu behavior injected into discovered nodes."""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict

from augment import metrics
from augment.config import AggregatedConfig
from augment.errors import NotFound
from augment.locator import ModuleLocator, by_display_name, by_props
from augment.tree import get_path, set_field

from picture_link.host import Host, Menu, MenuItem, PreviewRequest
from picture_link.settings import PictureLinkSettings

logger = logging.getLogger(__name__)

PREVIEW_FILTERS = (
    by_props("modal", "image"),
    by_display_name("ImageModal", default=True),
)


class ImageActions:
    def __init__(
        self, host: Host, locator: ModuleLocator, config: AggregatedConfig
    ):
        self.host = host
        self.locator = locator
        self.config = config

    @property
    def settings(self) -> PictureLinkSettings:
        return PictureLinkSettings.from_store(
            self.host.settings, self.config.plugin.open_in_browser_default
        )

    # --- opening -------------------------------------------------------------
    def open_image(self, src: str, banner: bool = False) -> None:
        if self.settings.open_in_browser:
            self.host.open_external(src)
            return
        try:
            classes, image_modal = self.locator.resolve_batch(PREVIEW_FILTERS)
        except NotFound as e:
            metrics.inc_error(e.error_type)
            logger.warning("preview surface unavailable: %s", e)
            return
        preview = self.config.preview
        height = preview.banner_height if banner else preview.size

        def _render(modal_props: Dict[str, Any]) -> PreviewRequest:
            return PreviewRequest(
                src=src,
                width=preview.size,
                height=height,
                animated=preview.animated,
                autoplay=preview.autoplay,
                component=image_modal,
                class_name=get_path(classes, "modal"),
                modal_props=dict(modal_props or {}),
            )

        self.host.open_modal(_render)

    def copy(self, text: str) -> None:
        self.host.write_clipboard(text)

    # --- wiring --------------------------------------------------------------
    def context_menu(self, image: str, copy_label: str, copy_id: str) -> Menu:
        """Right-click menu; "Open Image" always uses the square preview."""
        return Menu(
            items=[
                MenuItem(
                    id="open-image",
                    label="Open Image",
                    action=lambda: self.open_image(image),
                ),
                MenuItem(
                    id=copy_id,
                    label=copy_label,
                    action=lambda: self.copy(image),
                ),
            ],
            on_close=self.host.close_context_menu,
        )

    def attach(
        self,
        props: Any,
        image: str,
        *,
        copy_label: str,
        copy_id: str,
        banner: bool = False,
    ) -> None:
        """Set click + context-menu handler slots on a live props object."""

        def _on_click(*_args: Any) -> None:
            self.open_image(image, banner)

        def _on_context_menu(event: Any = None, *_args: Any) -> None:
            self.host.open_context_menu(
                event,
                lambda: self.context_menu(image, copy_label, copy_id),
            )

        set_field(props, "onClick", _on_click)
        set_field(props, "onContextMenu", _on_context_menu)


def handler_of(props: Any, slot: str = "onClick") -> Callable[..., Any] | None:
    fn = get_path(props, slot)
    return fn if callable(fn) else None


__all__ = ["ImageActions", "PREVIEW_FILTERS", "handler_of"]
