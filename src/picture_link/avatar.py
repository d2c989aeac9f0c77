"""Profile header avatar: click to preview, right-click for menu."""
from __future__ import annotations

import logging
from typing import Any

from augment import metrics
from augment.errors import TreeSearchMiss
from augment.lifecycle import CancellationToken
from augment.locator import by_display_name, by_props
from augment.patcher import PatchScope
from augment.tree import find_in_tree, get_path

from picture_link.actions import ImageActions
from picture_link.urls import full_size_avatar_url

logger = logging.getLogger(__name__)

HEADER_FILTER = by_display_name("UserProfileModalHeader", default=False)
HEADER_CLASSES_FILTER = by_props("customStatusSoloEmoji", "header")


class AvatarFeature:
    def __init__(self, actions: ImageActions):
        self.actions = actions
        self._avatar_class: str | None = None

    async def __call__(self, scope: PatchScope, token: CancellationToken) -> None:
        locator = self.actions.locator
        header = await locator.resolve_async(HEADER_FILTER, token)
        token.raise_if_cancelled("avatar discovery")
        # Loaded right after the header module, so a plain lookup suffices.
        classes = locator.resolve_sync(HEADER_CLASSES_FILTER)
        self._avatar_class = get_path(classes, "avatar")
        scope.after(header, "default", self.on_render)
        logger.debug("avatar: header patched")

    def image_for(self, props: Any) -> str | None:
        user = get_path(props, "user")
        get_url = get_path(user, "getAvatarURL")
        if not callable(get_url):
            return None
        size = self.actions.config.preview.size
        return full_size_avatar_url(get_url(False, size, True))

    def on_render(self, _this: Any, args: tuple, result: Any) -> None:
        avatar_class = self._avatar_class
        avatar = find_in_tree(
            result,
            lambda n: avatar_class is not None
            and get_path(n, "props", "className") == avatar_class,
            max_depth=self.actions.config.tree.max_depth,
        )
        image = self.image_for(args[0] if args else None)
        if avatar is None or not image:
            metrics.inc_error(TreeSearchMiss.error_type)
            logger.debug("avatar: nothing to augment in this render")
            return None
        self.actions.attach(
            get_path(avatar, "props"),
            image,
            copy_label="Copy Avatar URL",
            copy_id="copy-avatar-url",
        )
        return None


__all__ = ["AvatarFeature", "HEADER_FILTER", "HEADER_CLASSES_FILTER"]
