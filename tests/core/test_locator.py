import asyncio
from types import SimpleNamespace

import pytest

from augment.errors import CancellationRace, NotFound
from augment.lifecycle import CancellationToken
from augment.locator import (
    ModuleLocator,
    by_display_name,
    by_predicate,
    by_props,
)
from augment.registry import ModuleRegistry


def _component(name):
    def fn(props):
        return props
    fn.displayName = name
    return fn


@pytest.fixture()
def registry():
    reg = ModuleRegistry()
    reg.register("store", SimpleNamespace(getUser=lambda: 1, getMember=lambda: 2))
    reg.register("classes", {"modal": "m", "image": "i"})
    reg.register("wrapped", SimpleNamespace(default=_component("Header")))
    reg.register("bare", _component("Bare"))
    return reg


def test_by_props_matches_shape(registry):
    loc = ModuleLocator(registry)
    assert loc.resolve_sync(by_props("getUser", "getMember")).getMember() == 2
    assert loc.resolve_sync(by_props("modal", "image")) == {"modal": "m", "image": "i"}


def test_by_props_requires_every_name(registry):
    loc = ModuleLocator(registry)
    with pytest.raises(NotFound):
        loc.resolve_sync(by_props("getUser", "nope"))


def test_by_display_name_export_shape(registry):
    loc = ModuleLocator(registry)
    component = loc.resolve_sync(by_display_name("Header"))
    module = loc.resolve_sync(by_display_name("Header", default=False))
    assert component.displayName == "Header"
    assert module.default is component
    assert loc.resolve_sync(by_display_name("Bare")).displayName == "Bare"


def test_by_predicate(registry):
    loc = ModuleLocator(registry)
    flt = by_predicate(lambda m: isinstance(m, dict), "dict module")
    assert loc.resolve_sync(flt)["modal"] == "m"
    assert str(flt) == "dict module"


def test_resolve_sync_has_no_side_effects(registry):
    loc = ModuleLocator(registry)
    before = list(registry.entries())
    with pytest.raises(NotFound):
        loc.resolve_sync(by_display_name("Missing"))
    assert list(registry.entries()) == before
    assert registry.listener_count == 0


def test_resolve_batch_all_or_nothing(registry):
    loc = ModuleLocator(registry)
    store, classes = loc.resolve_batch(
        [by_props("getUser"), by_props("modal")]
    )
    assert store.getUser() == 1
    assert classes["image"] == "i"
    with pytest.raises(NotFound) as exc:
        loc.resolve_batch([by_props("getUser"), by_props("x"), by_props("y")])
    assert exc.value.details["missing"] == ["by_props(x)", "by_props(y)"]


def test_resolve_async_immediate_hit(registry):
    loc = ModuleLocator(registry)

    async def scenario():
        return await loc.resolve_async(by_props("modal"), CancellationToken())

    assert asyncio.run(scenario())["modal"] == "m"


def test_resolve_async_waits_for_lazy_module(registry):
    loc = ModuleLocator(registry)
    late = _component("Late")
    registry.define_lazy("late", lambda: SimpleNamespace(default=late))

    async def scenario():
        token = CancellationToken()
        task = asyncio.ensure_future(
            loc.resolve_async(by_display_name("Late", default=False), token)
        )
        await asyncio.sleep(0)
        assert not task.done()
        assert registry.listener_count == 1
        registry.require("late")
        result = await task
        return result

    module = asyncio.run(scenario())
    assert module.default is late
    assert registry.listener_count == 0


def test_resolve_async_resolves_once(registry):
    loc = ModuleLocator(registry)

    async def scenario():
        token = CancellationToken()
        task = asyncio.ensure_future(
            loc.resolve_async(by_props("flag"), token)
        )
        await asyncio.sleep(0)
        registry.register("first", {"flag": 1})
        registry.register("second", {"flag": 2})
        return await task

    assert asyncio.run(scenario()) == {"flag": 1}


def test_cancel_while_waiting_raises_cancellation_race(registry):
    loc = ModuleLocator(registry)

    async def scenario():
        token = CancellationToken()
        task = asyncio.ensure_future(loc.resolve_async(by_props("never"), token))
        await asyncio.sleep(0)
        token.cancel()
        with pytest.raises(CancellationRace):
            await task
        assert registry.listener_count == 0

    asyncio.run(scenario())


def test_resolution_then_cancel_before_resume_is_discarded(registry):
    loc = ModuleLocator(registry)

    async def scenario():
        token = CancellationToken()
        task = asyncio.ensure_future(loc.resolve_async(by_props("late"), token))
        await asyncio.sleep(0)
        # Module arrives and stop() runs before the waiter gets to resume.
        registry.register("late", {"late": True})
        token.cancel()
        with pytest.raises(CancellationRace):
            await task

    asyncio.run(scenario())


def test_already_cancelled_token_short_circuits(registry):
    loc = ModuleLocator(registry)
    token = CancellationToken()
    token.cancel()

    async def scenario():
        await loc.resolve_async(by_props("modal"), token)

    with pytest.raises(CancellationRace):
        asyncio.run(scenario())
