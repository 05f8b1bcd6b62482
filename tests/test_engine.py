import pytest
import requests
from conftest import FakeTool

from pdive.core.config import ScanConfig
from pdive.core.engine import PDiveEngine, STOP_NO_HOSTS, STOP_NO_TARGETS


@pytest.fixture(autouse=True)
def no_http(monkeypatch):
    def fake_get(url, **kwargs):
        raise requests.ConnectionError("offline")
    monkeypatch.setattr(requests, "get", fake_get)


def build(targets, display, mode="active", masscan=None, amass=None, ping_ok=(), open_map=None, resolvable=()):
    open_map = open_map or {}
    return PDiveEngine(
        targets,
        ScanConfig(threads=8, mode=mode),
        display,
        masscan=masscan or FakeTool(available=False),
        amass=amass or FakeTool(available=False),
        pinger=lambda h, t: h in ping_ok,
        connector=lambda h, p, t: p in open_map.get(h, ()),
        resolver=lambda h: h in resolvable,
    )


def test_no_valid_targets_stops_the_run(display):
    engine = build(["not a host"], display)
    state = engine.run()
    assert engine.stop_reason == STOP_NO_TARGETS
    assert state.hosts == {}
    assert engine.invalid_targets == ["not a host"]


def test_no_live_hosts_stops_before_port_scan(display):
    masscan = FakeTool(output="open tcp 80 10.0.0.1 1\n")
    engine = build(["10.0.0.0/30"], display, masscan=masscan)
    state = engine.run()

    assert engine.stop_reason == STOP_NO_HOSTS
    assert masscan.calls == []
    assert state.unresponsive_hosts == 4


def test_active_run_with_builtin_fallback(display):
    engine = build(
        ["10.0.0.0/30"], display,
        ping_ok={"10.0.0.1"},
        open_map={"10.0.0.1": {22, 80}, "10.0.0.2": {445}},
    )
    state = engine.run()

    assert engine.completed
    # 10.0.0.2 answers on 445 during fallback discovery
    assert set(state.hosts) == {"10.0.0.1", "10.0.0.2"}
    assert state.unresponsive_hosts == 2
    assert {p.port: p.service for p in state.hosts["10.0.0.1"].ports} == {22: "ssh", 80: "http"}
    assert {p.port: p.service for p in state.hosts["10.0.0.2"].ports} == {}


def test_active_run_merges_amass_and_masscan(display):
    amass = FakeTool(output="www.example.com\n")
    masscan = FakeTool(output="open tcp 22 10.0.0.1 1\nopen tcp 3306 www.example.com 1\n")
    engine = build(
        ["example.com", "10.0.0.1"], display,
        amass=amass, masscan=masscan,
        ping_ok={"10.0.0.1"}, resolvable={"example.com"},
    )
    state = engine.run()

    assert engine.completed
    _, _, lines = masscan.input_files[0]
    assert lines == ["www.example.com", "10.0.0.1"]
    assert [p.service for p in state.hosts["10.0.0.1"].ports] == ["ssh"]
    assert [p.service for p in state.hosts["www.example.com"].ports] == ["mysql"]
    # amass host keeps its discovered status
    assert state.hosts["www.example.com"].status == "discovered"
    assert "example.com" not in state.hosts


def test_passive_mode_only_uses_amass(display):
    amass = FakeTool(output="a.example.com\nb.example.com\n")
    masscan = FakeTool(output="open tcp 80 a.example.com 1\n")
    engine = build(["example.com"], display, mode="passive", amass=amass, masscan=masscan,
                   resolvable={"example.com"})
    state = engine.run()

    assert engine.completed
    assert sorted(state.hosts) == ["a.example.com", "b.example.com"]
    assert masscan.calls == []
    assert state.scan_info.discovery_mode == "passive"


def test_passive_mode_without_results_stops(display):
    engine = build(["example.com"], display, mode="passive", resolvable={"example.com"})
    engine.run()
    assert engine.stop_reason == STOP_NO_HOSTS
