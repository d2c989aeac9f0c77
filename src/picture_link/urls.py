"""CDN URL rewriting for full-size media."""
from __future__ import annotations

import re

FULL_SIZE = 2048

# Optional trailing ?size=NNN(N); matches the empty string at the end when
# absent, so the size gets appended.
_TRAILING_SIZE_RE = re.compile(r"(?:\?size=\d{3,4})?\Z")


def to_png(url: str) -> str:
    return url.replace(".webp", ".png", 1)


def with_size(url: str, size: int = FULL_SIZE) -> str:
    return _TRAILING_SIZE_RE.sub(f"?size={size}", url, count=1)


def full_size_banner_url(url: str | None, size: int = FULL_SIZE) -> str | None:
    if not url:
        return None
    return to_png(with_size(url, size))


def full_size_avatar_url(url: str | None) -> str | None:
    # Avatar URLs are requested at full size already; only the format changes.
    if not url:
        return None
    return to_png(url)


__all__ = [
    "FULL_SIZE",
    "to_png",
    "with_size",
    "full_size_banner_url",
    "full_size_avatar_url",
]
