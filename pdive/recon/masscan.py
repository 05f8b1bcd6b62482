import logging
import os
import tempfile

from pdive.core.results import PortRecord
from pdive.core.tools import ExternalTool, ToolError

DESCRIPTION = "Fast port scan (masscan) with built-in scanner fallback"
INSTALL_HINT = "Install masscan from: https://github.com/robertdavidgraham/masscan"


def parse_masscan_list(output):
    """
    Parse masscan ``-oL`` output into ``{host: [PortRecord, ...]}``.

    Lines look like ``open tcp 80 10.0.0.5 1690000000``. Only the first four
    fields matter; comments, non-open states, other protocols and junk lines
    are skipped.
    """
    results = {}
    for line in (output or "").splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.split()
        if len(parts) < 4 or parts[0] != "open" or parts[1] != "tcp":
            continue
        try:
            port = int(parts[2])
        except ValueError:
            continue
        if not 1 <= port <= 65535:
            continue
        host = parts[3]
        records = results.setdefault(host, [])
        if all(r.port != port for r in records):
            records.append(PortRecord(port=port, state="open", service=""))
    return results


class FastScanAdapter:
    def __init__(self, store, display, port_scanner, tool=None, rate=1000, ports="1-65535",
                 timeout=300, fallback_ports=None):
        self.store = store
        self.display = display
        self.port_scanner = port_scanner
        self.tool = tool or ExternalTool("masscan", install_hint=INSTALL_HINT)
        self.rate = rate
        self.ports = ports
        self.timeout = timeout
        self.fallback_ports = fallback_ports
        self.logger = logging.getLogger("pdive.masscan")

    def scan(self, hosts):
        hosts = list(hosts)
        if not hosts:
            self.display.log("No hosts provided for masscan", "ERROR")
            return {}

        if not self.tool.available():
            self.display.log("Masscan not found in PATH, falling back to basic port scan", "WARNING")
            hint = getattr(self.tool, "install_hint", None)
            if hint:
                self.display.log(hint, "INFO")
            return self._fallback(hosts)

        self.display.log(f"Running masscan on {len(hosts)} hosts...", "INFO")
        try:
            output = self._run_masscan(hosts)
        except ToolError as e:
            self.logger.warning(f"masscan failed: {e}")
            self.display.log(f"Masscan failed: {e}", "ERROR")
            self.display.log("Falling back to basic port scan...", "WARNING")
            return self._fallback(hosts)

        results = parse_masscan_list(output)
        for host, records in results.items():
            for r in records:
                self.display.log(f"Masscan found: {host}:{r.port}", "SUCCESS")

        self._merge(hosts, results)
        self.display.log(f"Masscan completed. Found ports on {len(results)} hosts.", "INFO")
        return results

    def _run_masscan(self, hosts):
        try:
            tmp = tempfile.NamedTemporaryFile(mode='w', prefix='masscan_targets_', suffix='.txt', delete=False)
        except OSError as e:
            raise ToolError(f"could not create masscan target file: {e}")
        try:
            try:
                with tmp:
                    for host in hosts:
                        tmp.write(f"{host}\n")
            except OSError as e:
                raise ToolError(f"could not write masscan target file: {e}")
            args = [
                "-iL", tmp.name,
                f"-p{self.ports}",
                "--rate", str(self.rate),
                "-oL", "-",
            ]
            return self.tool.run(args, timeout=self.timeout)
        finally:
            try:
                os.remove(tmp.name)
            except FileNotFoundError:
                pass

    def _merge(self, hosts, results):
        # Earlier phases may already hold ports for these hosts, so append, never replace.
        for host in hosts:
            self.store.add_host(host, "up")
        for host, records in results.items():
            self.store.merge_ports(host, records, status="up")

    def _fallback(self, hosts):
        self.port_scanner.scan(hosts, self.fallback_ports)
        return self.store.hosts_with_ports(hosts)
