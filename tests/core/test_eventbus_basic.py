from augment import metrics
from augment.eventbus import emit, subscribe
from augment.events import FeatureStarted, emit as emit_event, on


def test_eventbus_basic_dispatch():
    got = []
    unsub = subscribe("TestEvent", lambda p: got.append(p["value"]))
    subscribe("TestEvent", lambda p: got.append(p["value"] * 2))
    emit("TestEvent", {"value": 3})
    assert sorted(got) == [3, 6]
    unsub()
    emit("TestEvent", {"value": 1})
    assert sorted(got) == [2, 3, 6]
    snap = metrics.snapshot()["counters"]
    assert any("events_emitted_total" in k for k in snap)


def test_eventbus_handler_isolation():
    calls = []

    def bad(_):
        calls.append("bad")
        raise RuntimeError("boom")

    subscribe("IsoEvent", bad)
    subscribe("IsoEvent", lambda _: calls.append("good"))
    emit("IsoEvent", {})
    assert "good" in calls
    assert metrics.counter_value("handler_exceptions_total", {"event": "IsoEvent"}) == 1


def test_any_subscriber_bridge_gets_typed_events():
    seen = []
    on(lambda name, payload: seen.append((name, payload)))
    emit_event(FeatureStarted(feature="f", routines=2))
    assert seen[0][0] == "FeatureStarted"
    assert seen[0][1]["routines"] == 2
    assert "ts" in seen[0][1]
