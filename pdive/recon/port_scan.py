import logging
import threading

from pdive.core.config import COMMON_PORTS
from pdive.core.pool import WorkerPool
from pdive.core.results import PortRecord
from pdive.recon.host_discovery import tcp_connect

DESCRIPTION = "Threaded TCP-connect port scanner"


class PortScanner:
    """
    Hosts are spread over ``threads`` workers; each host then fans its port
    list out over a nested pool capped at ``ceiling``. Only connects are
    attempted, no banner is read.
    """

    def __init__(self, store, display, threads=50, ceiling=50, timeout=3, connector=None):
        self.store = store
        self.display = display
        self.threads = threads
        self.ceiling = ceiling
        self.timeout = timeout
        self.connector = connector or tcp_connect
        self.logger = logging.getLogger("pdive.portscan")

    def scan(self, hosts, ports=None):
        hosts = list(hosts)
        ports = list(ports) if ports else list(COMMON_PORTS)
        self.display.log(f"Running {DESCRIPTION} ({len(ports)} ports x {len(hosts)} hosts)...", "INFO")

        found = {}
        found_lock = threading.Lock()

        def work(host):
            records = self.scan_host(host, ports)
            with found_lock:
                found[host] = records

        WorkerPool("portscan").run(hosts, self.threads, work)
        return found

    def scan_host(self, host, ports):
        """Probe every port on one host, then replace its ports in the store."""
        self.display.log(f"Scanning {host}...", "INFO")
        open_ports = []
        mu = threading.Lock()

        def probe(port):
            if self.connector(host, port, self.timeout):
                with mu:
                    open_ports.append(PortRecord(port=port, state="open", service=""))
                self.display.log(f"Open port found: {host}:{port}", "SUCCESS")

        WorkerPool(f"ports-{host}").run(ports, self.threads, probe, ceiling=self.ceiling)

        open_ports.sort(key=lambda p: p.port)
        self.store.replace_ports(host, open_ports)
        self.logger.info(f"{host}: {len(open_ports)} open of {len(ports)} probed")
        return open_ports
