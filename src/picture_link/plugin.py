"""Picture Link plugin: host-facing start/stop/get_settings_panel.

The host calls start() once per enable and stop() once (or more) per
disable. start() must run on the host's asyncio loop; discovery continues
in the background after it returns.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List

from augment.config import AggregatedConfig, get_config
from augment.lifecycle import LifecycleController, LifecycleState
from augment.locator import ModuleLocator
from augment.logging_setup import configure_logging

from picture_link.actions import ImageActions
from picture_link.avatar import AvatarFeature
from picture_link.banner import BannerFeature
from picture_link.host import Host
from picture_link.settings import settings_panel

logger = logging.getLogger(__name__)

STYLE_PATH = Path(__file__).with_name("style.css")


class PictureLink:
    name = "picture-link"

    def __init__(self, host: Host, config: AggregatedConfig | None = None):
        self.host = host
        self.config = config or get_config()
        self.locator = ModuleLocator(host.registry)
        self.actions = ImageActions(host, self.locator, self.config)
        self.avatar = AvatarFeature(self.actions)
        self.banner = BannerFeature(self.actions)
        self._controller = LifecycleController(
            self.name, [self.avatar, self.banner]
        )
        self._style: Any = None

    @property
    def state(self) -> LifecycleState:
        return self._controller.state

    @property
    def controller(self) -> LifecycleController:
        return self._controller

    def start(self) -> None:
        if self._controller.state is not LifecycleState.STOPPED:
            logger.warning("%s: already started", self.name)
            return
        if self._controller.start():
            self._append_style()

    def stop(self) -> None:
        self._controller.stop()
        self._remove_style()

    def get_settings_panel(self) -> List[Dict[str, Any]]:
        return settings_panel(
            self.host.settings, self.config.plugin.open_in_browser_default
        )

    def open_image(self, src: str, banner: bool = False) -> None:
        self.actions.open_image(src, banner)

    async def wait_ready(self) -> None:
        """Wait until every discovery routine has finished (or given up)."""
        await self._controller.wait_settled()

    # --- stylesheet ----------------------------------------------------------
    def _append_style(self) -> None:
        try:
            css = STYLE_PATH.read_text(encoding="utf-8")
            self._style = self.host.append_style(self.config.plugin.style_id, css)
        except Exception:  # noqa: BLE001
            logger.exception("%s: stylesheet injection failed", self.name)
            self._style = None

    def _remove_style(self) -> None:
        if self._style is None:
            return
        handle, self._style = self._style, None
        try:
            self.host.remove_style(handle)
        except Exception:  # noqa: BLE001
            logger.exception("%s: stylesheet removal failed", self.name)


def load_plugin(host: Host, config: AggregatedConfig | None = None) -> PictureLink:
    """Host entry point: configure our loggers and build the plugin."""
    cfg = config or get_config()
    configure_logging(cfg.logging)
    return PictureLink(host, cfg)


__all__ = ["PictureLink", "load_plugin", "STYLE_PATH"]
