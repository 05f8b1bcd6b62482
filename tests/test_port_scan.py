import socket

import pytest

from pdive.core.results import PortRecord
from pdive.recon.host_discovery import tcp_connect
from pdive.recon.port_scan import PortScanner


@pytest.fixture
def listener():
    srv = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    srv.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    srv.bind(("127.0.0.1", 0))
    srv.listen(16)
    yield srv.getsockname()[1]
    srv.close()


@pytest.fixture
def closed_port():
    s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    s.bind(("127.0.0.1", 0))
    port = s.getsockname()[1]
    s.close()
    return port


def test_tcp_connect_against_loopback(listener, closed_port):
    assert tcp_connect("127.0.0.1", listener, timeout=1) is True
    assert tcp_connect("127.0.0.1", closed_port, timeout=1) is False


def test_real_open_port_is_recorded(store, display, listener, closed_port):
    scanner = PortScanner(store, display, threads=4, timeout=1)
    found = scanner.scan(["127.0.0.1"], [listener, closed_port])

    assert [p.port for p in found["127.0.0.1"]] == [listener]
    record = store.get_host("127.0.0.1")
    assert [(p.port, p.state, p.service) for p in record.ports] == [(listener, "open", "")]


def test_no_reachable_ports_yields_empty_set(store, display):
    scanner = PortScanner(store, display, threads=4, connector=lambda h, p, t: False)
    found = scanner.scan(["10.0.0.1"], [21, 22, 80])
    assert found == {"10.0.0.1": []}
    assert store.ports_for("10.0.0.1") == []


def test_scan_replaces_previous_ports(store, display):
    store.merge_ports("10.0.0.1", [PortRecord(8080), PortRecord(22)])
    scanner = PortScanner(store, display, threads=4, connector=lambda h, p, t: p == 443)
    scanner.scan(["10.0.0.1"], [22, 443, 8080])
    assert [p.port for p in store.ports_for("10.0.0.1")] == [443]


def test_default_port_list_and_many_hosts(store, display):
    open_map = {"10.0.0.1": {22, 80}, "10.0.0.2": {3389}}
    scanner = PortScanner(store, display, threads=3, ceiling=5,
                          connector=lambda h, p, t: p in open_map.get(h, ()))
    found = scanner.scan(["10.0.0.1", "10.0.0.2", "10.0.0.3"])

    assert [p.port for p in found["10.0.0.1"]] == [22, 80]
    assert [p.port for p in found["10.0.0.2"]] == [3389]
    assert found["10.0.0.3"] == []
    assert store.total_ports() == 3
