"""Profile banner: click to preview, right-click for menu."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Dict

from augment import metrics
from augment.errors import TreeSearchMiss
from augment.lifecycle import CancellationToken
from augment.locator import by_display_name, by_props
from augment.patcher import PatchScope
from augment.tree import find_in_tree, get_path, set_field

from picture_link.actions import ImageActions, handler_of
from picture_link.urls import full_size_banner_url

logger = logging.getLogger(__name__)

BANNER_FILTERS = (
    by_display_name("UserBanner", default=False),
    by_props("getUserBannerURL"),
    by_props("getMember"),
)

# Host enum value for the full profile banner (other values: popouts etc.)
PROFILE_BANNER_TYPE = 1


def _fields(obj: Any) -> Dict[str, Any]:
    if obj is None:
        return {}
    if isinstance(obj, Mapping):
        return dict(obj)
    try:
        return {k: v for k, v in vars(obj).items() if not k.startswith("_")}
    except TypeError:
        return {}


class BannerFeature:
    def __init__(self, actions: ImageActions):
        self.actions = actions
        self._banners: Any = None
        self._members: Any = None

    async def __call__(self, scope: PatchScope, token: CancellationToken) -> None:
        banner, banners, members = self.actions.locator.resolve_batch(
            BANNER_FILTERS
        )
        token.raise_if_cancelled("banner discovery")
        self._banners, self._members = banners, members
        scope.after(banner, "default", self.on_render)
        logger.debug("banner: UserBanner patched")

    def image_for(self, options: Any) -> str | None:
        user = get_path(options, "user")
        guild_id = get_path(options, "guildId")
        getter = "getGuildMemberBannerURL" if guild_id else "getUserBannerURL"
        get_url = get_path(self._banners, getter)
        if not callable(get_url):
            return None
        member = None
        get_member = get_path(self._members, "getMember")
        if guild_id and callable(get_member):
            member = get_member(guild_id, get_path(user, "id"))
        payload = {
            **_fields(user),
            **_fields(member),
            "canAnimate": True,
            "guildId": guild_id,
        }
        return full_size_banner_url(
            get_url(payload), self.actions.config.preview.size
        )

    def on_render(self, _this: Any, args: tuple, result: Any) -> None:
        options = args[0] if args else None
        if get_path(options, "bannerType") != PROFILE_BANNER_TYPE:
            return None
        props = get_path(result, "props")
        if props is None:
            metrics.inc_error(TreeSearchMiss.error_type)
            return None
        existing = find_in_tree(
            get_path(props, "children"),
            lambda p: handler_of(p) is not None,
            max_depth=self.actions.config.tree.max_depth,
        )
        image = self.image_for(options)
        if existing is not None or handler_of(props) is not None or not image:
            logger.debug("banner: left untouched (handler present or no image)")
            return None
        self.actions.attach(
            props,
            image,
            copy_label="Copy Banner URL",
            copy_id="copy-banner-url",
            banner=True,
        )
        marker = self.actions.config.plugin.class_name
        set_field(
            props,
            "className",
            " ".join(c for c in (get_path(props, "className"), marker) if c),
        )
        return None


__all__ = ["BannerFeature", "BANNER_FILTERS", "PROFILE_BANNER_TYPE"]
