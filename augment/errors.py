"""Central error taxonomy for runtime augmentation.

Every failure the core can absorb maps to one error_type code. Codes are
validated against the taxonomy so that metrics labels stay stable.
"""
from __future__ import annotations

_ALLOWED_ERROR_TYPES = {
    # discovery
    "module-not-found",
    "cancellation-race",
    "registry-error",
    # interception
    "unpatchable",
    "patch-callback-error",
    # render tree
    "tree-search-miss",
    # config
    "config-out-of-range",
    "config-invalid",
    # infra
    "event-handler-error",
    "feature-internal",
}


def validate_error_type(code: str) -> str:
    assert (
        code in _ALLOWED_ERROR_TYPES
    ), f"Unknown error_type '{code}' (not in taxonomy)"
    return code


class AugmentError(Exception):
    """Base for every failure raised by the augmentation core."""

    error_type = "feature-internal"

    def __init__(self, message: str, *, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class NotFound(AugmentError):
    """A module filter matched nothing in the registry."""

    error_type = "module-not-found"


class Unpatchable(AugmentError):
    """Target object or method missing (or not rebindable) at patch time."""

    error_type = "unpatchable"


class TreeSearchMiss(AugmentError):
    """Predicate matched nothing inside an intercepted render result."""

    error_type = "tree-search-miss"


class CancellationRace(AugmentError):
    """Discovery resumed after the owning feature was stopped."""

    error_type = "cancellation-race"


class RegistryError(AugmentError):
    """Invalid registry operation (duplicate id, unknown lazy entry)."""

    error_type = "registry-error"


def map_exception(e: BaseException) -> str:
    if isinstance(e, AugmentError):
        return validate_error_type(e.error_type)
    return "feature-internal"


__all__ = [
    "validate_error_type",
    "map_exception",
    "AugmentError",
    "NotFound",
    "Unpatchable",
    "TreeSearchMiss",
    "CancellationRace",
    "RegistryError",
]
