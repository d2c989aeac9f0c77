import pytest

from augment import metrics
from augment.errors import RegistryError
from augment.registry import ModuleRegistry


def test_register_and_entries_in_load_order():
    reg = ModuleRegistry()
    reg.register("b", {"n": 2})
    reg.register("a", {"n": 1})
    assert [mid for mid, _ in reg.entries()] == ["b", "a"]
    assert "a" in reg and len(reg) == 2


def test_duplicate_id_rejected():
    reg = ModuleRegistry()
    reg.register("x", {})
    with pytest.raises(RegistryError):
        reg.register("x", {})
    with pytest.raises(RegistryError):
        reg.define_lazy("x", dict)


def test_lazy_entry_loads_once_on_require():
    reg = ModuleRegistry()
    built = []

    def factory():
        built.append(1)
        return {"lazy": True}

    reg.define_lazy("lazy", factory)
    assert reg.pending() == ["lazy"]
    assert reg.find(lambda m: m.get("lazy")) is None
    first = reg.require("lazy")
    second = reg.require("lazy")
    assert first is second and built == [1]
    assert reg.pending() == []
    assert reg.find(lambda m: m.get("lazy")) is first


def test_require_unknown_raises():
    with pytest.raises(RegistryError):
        ModuleRegistry().require("ghost")


def test_listeners_notified_and_isolated():
    reg = ModuleRegistry()
    got = []

    def bad(mid, exports):
        raise RuntimeError("listener bug")

    reg.add_listener(bad)
    reg.add_listener(lambda mid, exports: got.append(mid))
    reg.register("m", object())
    assert got == ["m"]
    assert metrics.counter_value("registry_listener_errors_total") == 1
    reg.remove_listener(bad)
    reg.remove_listener(bad)
    assert reg.listener_count == 1


def test_find_skips_modules_that_break_probes():
    reg = ModuleRegistry()
    reg.register("int", 5)
    reg.register("dict", {"k": 1})
    assert reg.find(lambda m: m["k"] == 1) == {"k": 1}
