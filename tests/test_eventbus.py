from __future__ import annotations

import pytest

from localmods.services.eventbus import LocalEventBus, emit


def test_prefix_routing_and_wildcards():
    bus = LocalEventBus()
    seen: dict[str, list[str]] = {"module": [], "all": [], "star": []}
    bus.subscribe("module.", lambda ev: seen["module"].append(ev.type))
    bus.subscribe("", lambda ev: seen["all"].append(ev.type))
    bus.subscribe("*", lambda ev: seen["star"].append(ev.type))

    emit(bus, "module.installed", {"name": "Foo"}, "test")
    emit(bus, "other.thing", {}, "test")

    assert seen["module"] == ["module.installed"]
    assert seen["all"] == seen["star"] == ["module.installed", "other.thing"]


def test_unsubscribe():
    bus = LocalEventBus()
    seen = []
    unsubscribe = bus.subscribe("module.", seen.append)
    emit(bus, "module.installed", {"name": "Foo"}, "test")
    unsubscribe()
    unsubscribe()
    emit(bus, "module.updated", {"name": "Foo"}, "test")
    assert [e.type for e in seen] == ["module.installed"]


def test_handler_errors_propagate():
    bus = LocalEventBus()

    def boom(ev):
        raise RuntimeError("handler failed")

    bus.subscribe("", boom)
    with pytest.raises(RuntimeError):
        emit(bus, "module.installed", {}, "test")


def test_emit_without_bus_is_a_no_op():
    emit(None, "module.installed", {"name": "Foo"}, "test")


def test_payload_is_copied():
    bus = LocalEventBus()
    seen = []
    bus.subscribe("", seen.append)
    payload = {"name": "Foo"}
    emit(bus, "module.installed", payload, "test")
    payload["name"] = "Bar"
    assert seen[0].payload == {"name": "Foo"}
