import subprocess
import threading

from pdive.recon import host_discovery
from pdive.recon.host_discovery import HostDiscoverer


def make_discoverer(store, display, ping_ok=(), port_ok=None, **kwargs):
    port_ok = port_ok or {}
    attempts = []
    lock = threading.Lock()

    def pinger(host, timeout):
        return host in ping_ok

    def connector(host, port, timeout):
        with lock:
            attempts.append((host, port))
        return port in port_ok.get(host, ())

    d = HostDiscoverer(store, display, threads=8, pinger=pinger, connector=connector, **kwargs)
    return d, attempts


def test_ping_hits_are_live_and_skip_phase_two(store, display):
    d, attempts = make_discoverer(store, display, ping_ok={"10.0.0.1", "10.0.0.2"})
    result = d.discover(["10.0.0.1", "10.0.0.2"])

    assert result.live_hosts == ["10.0.0.1", "10.0.0.2"]
    assert result.ping_responsive == 2
    assert result.port_responsive == 0
    assert attempts == []


def test_fallback_port_marks_host_live(store, display):
    d, attempts = make_discoverer(
        store, display,
        ping_ok={"10.0.0.1"},
        port_ok={"10.0.0.2": {22}},
    )
    result = d.discover(["10.0.0.1", "10.0.0.2", "10.0.0.3"])

    assert result.live_hosts == ["10.0.0.1", "10.0.0.2"]
    assert result.port_responsive == 1
    assert result.unresponsive == 1
    assert "10.0.0.2" in store and "10.0.0.3" not in store
    assert store.get_host("10.0.0.2").status == "up"


def test_first_open_port_short_circuits(store, display):
    d, attempts = make_discoverer(store, display, port_ok={"10.0.0.2": {443, 22}})
    d.discover(["10.0.0.2"])
    # default order is 80, 443, 22, ...: stops at 443
    assert attempts == [("10.0.0.2", 80), ("10.0.0.2", 443)]


def test_silent_host_tries_every_fallback_port(store, display):
    d, attempts = make_discoverer(store, display, ports=[80, 8080, 22])
    result = d.discover(["10.0.0.3"])
    assert result.live_hosts == []
    assert attempts == [("10.0.0.3", 80), ("10.0.0.3", 8080), ("10.0.0.3", 22)]


def test_counts_always_add_up(store, display):
    hosts = [f"10.0.1.{i}" for i in range(40)]
    ping_ok = set(hosts[::3])
    port_ok = {h: {53} for h in hosts[1::3]}
    d, _ = make_discoverer(store, display, ping_ok=ping_ok, port_ok=port_ok)

    result = d.discover(hosts)

    assert len(result.live_hosts) + result.unresponsive == len(hosts)
    assert store.unresponsive_hosts == result.unresponsive
    assert set(store.host_names()) == set(result.live_hosts)


def test_ping_errors_count_as_not_live(store, display):
    def pinger(host, timeout):
        raise OSError("network unreachable")

    d = HostDiscoverer(store, display, threads=2, pinger=pinger, connector=lambda h, p, t: False)
    result = d.discover(["10.0.0.1"])
    assert result.live_hosts == []
    assert result.unresponsive == 1


def test_ping_host_uses_exit_code(monkeypatch):
    calls = []

    def fake_run(cmd, **kwargs):
        calls.append((cmd, kwargs["timeout"]))
        return subprocess.CompletedProcess(cmd, 0 if cmd[-1] == "10.0.0.1" else 1)

    monkeypatch.setattr(subprocess, "run", fake_run)
    assert host_discovery.ping_host("10.0.0.1", timeout=2) is True
    assert host_discovery.ping_host("10.0.0.9", timeout=2) is False
    assert calls[0][0][0] == "ping" and calls[0][1] == 2


def test_ping_timeout_is_negative(monkeypatch):
    def fake_run(cmd, **kwargs):
        raise subprocess.TimeoutExpired(cmd, kwargs["timeout"])

    monkeypatch.setattr(subprocess, "run", fake_run)
    assert host_discovery.ping_host("10.0.0.1") is False


def test_ping_command_per_platform(monkeypatch):
    monkeypatch.setattr(host_discovery.platform, "system", lambda: "Linux")
    assert host_discovery.ping_command("h", 2) == ["ping", "-c", "1", "-W", "2", "h"]
    monkeypatch.setattr(host_discovery.platform, "system", lambda: "Windows")
    assert host_discovery.ping_command("h", 2) == ["ping", "-n", "1", "-w", "2000", "h"]
