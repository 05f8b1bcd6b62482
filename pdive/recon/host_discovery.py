import logging
import platform
import socket
import subprocess
import threading
from dataclasses import dataclass, field
from typing import List

from pdive.core.config import DISCOVERY_PORTS
from pdive.core.pool import WorkerPool

DESCRIPTION = "Two-phase host discovery (ping sweep, then TCP fallback)"


def ping_command(host, timeout=2):
    if platform.system().lower() == "windows":
        return ["ping", "-n", "1", "-w", str(int(timeout * 1000)), host]
    return ["ping", "-c", "1", "-W", str(max(1, int(timeout))), host]


def ping_host(host, timeout=2):
    """One echo request through the system ping. Exit code 0 means reachable."""
    try:
        result = subprocess.run(
            ping_command(host, timeout),
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            timeout=timeout,
        )
        return result.returncode == 0
    except (subprocess.TimeoutExpired, OSError):
        return False


def tcp_connect(host, port, timeout=3):
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError:
        return False


@dataclass
class DiscoveryResult:
    live_hosts: List[str] = field(default_factory=list)
    ping_responsive: int = 0
    port_responsive: int = 0
    total: int = 0

    @property
    def unresponsive(self):
        return self.total - len(self.live_hosts)


class HostDiscoverer:
    """
    Phase 1 pings every host at full concurrency. Phase 2 retries only the
    silent ones with sequential TCP connects to a short port list, under a
    lower ceiling. A host is live as soon as either phase gets an answer.
    """

    def __init__(self, store, display, threads=50, ports=None, ping_timeout=2, connect_timeout=3,
                 ceiling=20, pinger=None, connector=None):
        self.store = store
        self.display = display
        self.threads = threads
        self.ports = list(ports) if ports else list(DISCOVERY_PORTS)
        self.ping_timeout = ping_timeout
        self.connect_timeout = connect_timeout
        self.ceiling = ceiling
        self.pinger = pinger or ping_host
        self.connector = connector or tcp_connect
        self.logger = logging.getLogger("pdive.discovery")
        self._live = set()
        self._mu = threading.Lock()

    def discover(self, hosts):
        hosts = list(hosts)
        result = DiscoveryResult(total=len(hosts))
        self._live = set()

        self.display.log(f"Running {DESCRIPTION} over {len(hosts)} hosts...", "INFO")

        self.display.log("Phase 1: Ping discovery...", "INFO")
        WorkerPool("ping").run(hosts, self.threads, self._ping_one)
        result.ping_responsive = len(self._live)

        silent = [h for h in hosts if h not in self._live]
        if silent:
            self.display.log(f"Phase 2: Port-based discovery for {len(silent)} non-ping responsive hosts...", "INFO")
            WorkerPool("tcp-discovery").run(silent, self.threads, self._probe_one, ceiling=self.ceiling)
        result.port_responsive = len(self._live) - result.ping_responsive

        result.live_hosts = [h for h in hosts if h in self._live]
        self.store.set_unresponsive(result.unresponsive)

        self.display.log(
            f"Host discovery completed. Found {len(result.live_hosts)} live hosts from {result.total} total hosts.",
            "INFO",
        )
        self.display.log(
            f"Ping responsive: {result.ping_responsive}, Port responsive: {result.port_responsive}",
            "INFO",
        )
        return result

    def _mark_live(self, host, method):
        with self._mu:
            self._live.add(host)
        self.store.add_host(host, "up")
        self.logger.info(f"Host up ({method}): {host}")
        self.display.log(f"Host discovered ({method}): {host}", "SUCCESS")

    def _ping_one(self, host):
        if self.pinger(host, self.ping_timeout):
            self._mark_live(host, "ping")

    def _probe_one(self, host):
        for port in self.ports:
            if self.connector(host, port, self.connect_timeout):
                self._mark_live(host, f"port {port}")
                return
