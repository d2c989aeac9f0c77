from picture_link.host import InMemorySettings
from picture_link.settings import PictureLinkSettings, settings_panel


def test_defaults_follow_config_default():
    store = InMemorySettings()
    assert PictureLinkSettings.from_store(store).open_in_browser is False
    assert PictureLinkSettings.from_store(store, True).open_in_browser is True


def test_store_value_wins_over_default():
    store = InMemorySettings({"openInBrowser": False})
    assert PictureLinkSettings.from_store(store, True).open_in_browser is False


def test_settings_panel_describes_switch():
    panel = settings_panel(InMemorySettings({"openInBrowser": True}))
    assert len(panel) == 1
    (entry,) = panel
    assert entry["type"] == "switch"
    assert entry["id"] == "openInBrowser"
    assert entry["name"] == "Open in browser"
    assert entry["value"] is True
    assert "browser" in entry["note"]
