import pytest

from augment.errors import (
    CancellationRace,
    NotFound,
    RegistryError,
    TreeSearchMiss,
    Unpatchable,
    map_exception,
    validate_error_type,
)


def test_error_taxonomy_known():
    assert validate_error_type("module-not-found") == "module-not-found"
    assert validate_error_type("tree-search-miss") == "tree-search-miss"


def test_error_taxonomy_unknown():
    with pytest.raises(AssertionError):
        validate_error_type("not-a-code")


@pytest.mark.parametrize(
    "exc,code",
    [
        (NotFound("x"), "module-not-found"),
        (Unpatchable("x"), "unpatchable"),
        (TreeSearchMiss("x"), "tree-search-miss"),
        (CancellationRace("x"), "cancellation-race"),
        (RegistryError("x"), "registry-error"),
        (ValueError("x"), "feature-internal"),
    ],
)
def test_map_exception(exc, code):
    assert map_exception(exc) == code
