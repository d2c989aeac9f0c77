"""Pytest configuration ensuring project root is importable.

Adds repository root and src/ to sys.path explicitly to avoid
interpreter/path quirks, and provides a fake host with a populated module
registry for plugin tests.
"""
from __future__ import annotations

import os
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
SRC = ROOT / "src"
if SRC.exists() and str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from augment import metrics  # noqa: E402
from augment.config import clear_config_cache  # noqa: E402
from augment import eventbus  # noqa: E402
from augment.events import reset_listeners_for_tests  # noqa: E402
from augment.registry import ModuleRegistry  # noqa: E402
from picture_link.host import Host, InMemorySettings  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_config_env(tmp_path):  # noqa: D401
    """Ensure global config/env/metrics side effects do not leak.

    - Point PICTURE_LINK_CONFIG_DIR at an empty dir (defaults only)
    - Clear aggregated config cache between tests
    - Reset metrics and any-event listeners
    """
    prev = os.environ.get("PICTURE_LINK_CONFIG_DIR")
    os.environ["PICTURE_LINK_CONFIG_DIR"] = str(tmp_path / "no-configs")
    clear_config_cache()
    metrics.reset_for_tests()
    reset_listeners_for_tests()
    eventbus.reset_for_tests()
    try:
        yield
    finally:
        clear_config_cache()
        if prev is None:
            os.environ.pop("PICTURE_LINK_CONFIG_DIR", None)
        else:
            os.environ["PICTURE_LINK_CONFIG_DIR"] = prev


class FakeHost(Host):
    def __init__(self, settings: dict | None = None):
        self._registry = ModuleRegistry()
        self._settings = InMemorySettings(settings)
        self.modals: list = []
        self.context_menus: list = []
        self.external: list[str] = []
        self.clipboard: list[str] = []
        self.styles: dict[str, str] = {}
        self.closed_menus = 0

    @property
    def registry(self) -> ModuleRegistry:
        return self._registry

    @property
    def settings(self) -> InMemorySettings:
        return self._settings

    def open_modal(self, render):
        request = render({"transitionState": 1})
        self.modals.append(request)
        return request

    def open_context_menu(self, event, render):
        self.context_menus.append((event, render()))

    def close_context_menu(self):
        self.closed_menus += 1

    def open_external(self, url):
        self.external.append(url)

    def write_clipboard(self, text):
        self.clipboard.append(text)

    def append_style(self, style_id, css):
        self.styles[style_id] = css
        return style_id

    def remove_style(self, handle):
        self.styles.pop(handle, None)


class FakeUser:
    def __init__(self, user_id: str = "42", banner: str = "abc"):
        self.id = user_id
        self.banner = banner

    def getAvatarURL(self, animated, size, can_animate):  # noqa: N802
        return f"https://cdn.example/avatars/{self.id}/av.webp?size={size}"


def _component(name: str, fn):
    fn.displayName = name
    return fn


def profile_header(props):
    return {
        "type": "header",
        "props": {
            "className": "header",
            "children": [
                {"type": "span", "props": {"children": "name"}},
                {
                    "type": "div",
                    "props": {
                        "className": "wrapper",
                        "children": {
                            "type": "img",
                            "props": {"className": "avatar-cls", "src": "x"},
                        },
                    },
                },
            ],
        },
    }


def user_banner(options):
    return {
        "type": "div",
        "props": {
            "className": "banner",
            "children": [{"type": "span", "props": {"children": "..."}}],
        },
    }


def build_host_modules():
    return SimpleNamespace(
        classes=SimpleNamespace(modal="modal-cls", image="image-cls"),
        image_modal=SimpleNamespace(
            default=_component("ImageModal", lambda props: props)
        ),
        banner=SimpleNamespace(default=_component("UserBanner", user_banner)),
        banners=SimpleNamespace(
            getUserBannerURL=lambda u: (
                f"https://cdn.example/banners/{u['id']}/{u['banner']}.webp?size=600"
            ),
            getGuildMemberBannerURL=lambda u: (
                f"https://cdn.example/guilds/{u['guildId']}/{u['banner']}.webp"
            ),
        ),
        members=SimpleNamespace(
            getMember=lambda guild_id, user_id: {"banner": "guildbanner"}
        ),
        header_classes=SimpleNamespace(
            customStatusSoloEmoji="emoji", header="header", avatar="avatar-cls"
        ),
        header=SimpleNamespace(
            default=_component("UserProfileModalHeader", profile_header)
        ),
    )


def populate(host: FakeHost, modules, *, lazy_header: bool = True) -> None:
    reg = host.registry
    reg.register("classes", modules.classes)
    reg.register("image-modal", modules.image_modal)
    reg.register("user-banner", modules.banner)
    reg.register("banner-store", modules.banners)
    reg.register("member-store", modules.members)
    if lazy_header:
        reg.define_lazy("profile-header", lambda: modules.header)
        reg.define_lazy("header-classes", lambda: modules.header_classes)
    else:
        reg.register("header-classes", modules.header_classes)
        reg.register("profile-header", modules.header)


def load_profile(host: FakeHost) -> None:
    """What the host does when the profile modal is first opened."""
    host.registry.require("header-classes")
    host.registry.require("profile-header")


@pytest.fixture()
def fake_host():
    return FakeHost()


@pytest.fixture()
def host_modules():
    return build_host_modules()


@pytest.fixture()
def helpers():
    return SimpleNamespace(
        FakeHost=FakeHost,
        FakeUser=FakeUser,
        populate=populate,
        load_profile=load_profile,
    )
