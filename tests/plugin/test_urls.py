import pytest

from picture_link.urls import (
    full_size_avatar_url,
    full_size_banner_url,
    to_png,
    with_size,
)


@pytest.mark.parametrize(
    "url,expected",
    [
        ("https://cdn/b/1/x.webp?size=600", "https://cdn/b/1/x.png?size=2048"),
        ("https://cdn/b/1/x.webp", "https://cdn/b/1/x.png?size=2048"),
        ("https://cdn/b/1/a_x.gif?size=1024", "https://cdn/b/1/a_x.gif?size=2048"),
    ],
)
def test_full_size_banner_url(url, expected):
    assert full_size_banner_url(url) == expected


def test_size_suffix_only_replaced_at_end():
    # a ?size= in the middle of the url is not the trailing size parameter
    url = "https://cdn/b?size=600/x.webp"
    assert with_size(url, 2048) == "https://cdn/b?size=600/x.webp?size=2048"


def test_to_png_replaces_first_occurrence_only():
    assert to_png("a.webp/b.webp") == "a.png/b.webp"


def test_empty_urls_yield_none():
    assert full_size_banner_url(None) is None
    assert full_size_banner_url("") is None
    assert full_size_avatar_url(None) is None


def test_avatar_keeps_size_and_switches_format():
    assert (
        full_size_avatar_url("https://cdn/a/1/h.webp?size=2048")
        == "https://cdn/a/1/h.png?size=2048"
    )
