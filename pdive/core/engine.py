import logging

from pdive.core.config import ScanConfig
from pdive.core.results import ResultStore
from pdive.recon import targets as target_utils
from pdive.recon.host_discovery import HostDiscoverer
from pdive.recon.masscan import FastScanAdapter
from pdive.recon.passive import PassiveSourceAdapter
from pdive.recon.port_scan import PortScanner
from pdive.recon.service_id import ServiceIdentifier

STOP_NO_TARGETS = "no valid targets"
STOP_NO_HOSTS = "no hosts discovered"


class PDiveEngine:
    """
    Runs one reconnaissance pass.

    Active mode:  amass -> ping/TCP discovery -> masscan (or built-in scan) -> service id
    Passive mode: amass only

    Collaborators can be injected for tests; by default the real binaries and
    network probes are used.
    """

    def __init__(self, targets, config=None, display=None, masscan=None, amass=None,
                 pinger=None, connector=None, fetcher=None, resolver=None):
        if display is None:
            from pdive.core.display import DisplayManager
            display = DisplayManager()
        self.config = config or ScanConfig()
        self.display = display
        self.targets = list(targets)
        self.invalid_targets = []
        self.resolver = resolver or target_utils.resolves
        self.stop_reason = None
        self.logger = logging.getLogger("pdive.engine")

        cfg = self.config
        self.store = ResultStore(self.targets, mode=cfg.mode)
        self.passive = PassiveSourceAdapter(self.store, display, tool=amass, timeout=cfg.amass_timeout)
        self.discoverer = HostDiscoverer(
            self.store, display,
            threads=cfg.threads,
            ports=cfg.discovery_ports,
            ping_timeout=cfg.ping_timeout,
            connect_timeout=cfg.connect_timeout,
            ceiling=cfg.discovery_ceiling,
            pinger=pinger,
            connector=connector,
        )
        self.port_scanner = PortScanner(
            self.store, display,
            threads=cfg.threads,
            ceiling=cfg.port_ceiling,
            timeout=cfg.connect_timeout,
            connector=connector,
        )
        self.fast_scanner = FastScanAdapter(
            self.store, display, self.port_scanner,
            tool=masscan,
            rate=cfg.masscan_rate,
            ports=cfg.masscan_ports,
            timeout=cfg.masscan_timeout,
            fallback_ports=cfg.common_ports,
        )
        self.services = ServiceIdentifier(self.store, display, timeout=cfg.http_timeout, fetcher=fetcher)

    @property
    def completed(self):
        return self.stop_reason is None

    def validate_targets(self):
        valid, invalid = target_utils.validate(self.targets, resolver=self.resolver)
        if invalid:
            self.display.log(f"Invalid targets: {', '.join(invalid)}", "ERROR")
        self.invalid_targets = invalid
        self.targets = valid
        return bool(valid)

    def _stop(self, reason, message):
        self.stop_reason = reason
        self.logger.warning(f"Run stopped: {reason}")
        self.display.log(message, "ERROR")
        return self.store.snapshot()

    def run(self):
        if not self.validate_targets():
            return self._stop(STOP_NO_TARGETS, "No valid targets found")

        if hasattr(self.display, "print_banner"):
            self.display.print_banner(self.config, self.targets)

        if self.config.mode == "passive":
            return self.run_passive()
        return self.run_active()

    def run_passive(self):
        discovered = self.passive.discover(self.targets)
        if not discovered:
            return self._stop(STOP_NO_HOSTS, "No hosts discovered through passive methods.")

        self.display.log(f"Total hosts discovered: {len(discovered)}", "SUCCESS")
        if hasattr(self.display, "print_host_list"):
            self.display.print_host_list(discovered)
        return self.store.snapshot()

    def run_active(self):
        self.display.log("Starting Active Discovery Mode", "INFO")

        self.display.log("Phase 1: Passive subdomain discovery with amass", "INFO")
        amass_hosts = self.passive.discover(self.targets)

        self.display.log("Phase 2: Host discovery and connectivity check", "INFO")
        discovery = self.discoverer.discover(target_utils.expand(self.targets))

        hosts = target_utils.dedupe(amass_hosts + discovery.live_hosts)
        if not hosts:
            return self._stop(STOP_NO_HOSTS, "No live hosts discovered.")

        self.store.add_hosts(hosts, status="up")

        self.display.log("Phase 3: Fast port scanning with masscan", "INFO")
        port_map = self.fast_scanner.scan(hosts)

        if port_map:
            self.display.log("Phase 4: Basic service identification", "INFO")
            self.services.identify(hosts)

        self.display.log("Reconnaissance scan completed!", "SUCCESS")
        return self.store.snapshot()
