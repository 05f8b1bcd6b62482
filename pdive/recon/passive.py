import logging

from pdive.core.tools import ExternalTool, ToolError
from pdive.recon.targets import dedupe, extract_domain

DESCRIPTION = "Passive subdomain discovery (amass)"
INSTALL_HINT = "Install amass from: https://github.com/OWASP/Amass"


class PassiveSourceAdapter:
    def __init__(self, store, display, tool=None, timeout=60):
        self.store = store
        self.display = display
        self.tool = tool or ExternalTool("amass", install_hint=INSTALL_HINT)
        self.timeout = timeout
        self.logger = logging.getLogger("pdive.passive")

    def discover(self, targets):
        """Enumerate subdomains for every domain-like target and record them."""
        self.display.log(f"Running {DESCRIPTION}...", "INFO")

        domains = [d for d in (extract_domain(t) for t in targets) if d]
        if domains and not self.tool.available():
            self.display.log("Amass not found in PATH, skipping amass discovery", "WARNING")
            hint = getattr(self.tool, "install_hint", None)
            if hint:
                self.display.log(hint, "INFO")
            domains = []

        found = []
        for domain in domains:
            self.display.log(f"Performing passive discovery on domain: {domain}", "INFO")
            found.extend(self.enumerate(domain))

        found = dedupe(found)
        self.store.add_hosts(found, status="discovered")
        self.display.log(f"Passive discovery completed. Found {len(found)} hosts.", "INFO")
        return found

    def enumerate(self, domain):
        try:
            output = self.tool.run(["enum", "-d", domain, "-passive"], timeout=self.timeout)
        except ToolError as e:
            self.logger.warning(f"amass failed for {domain}: {e}")
            self.display.log(f"Amass failed: {e}", "ERROR")
            return []

        hosts = []
        for line in output.splitlines():
            line = line.strip()
            if not line:
                continue
            # undecodable bytes come through as U+FFFD
            if "\ufffd" in line:
                self.logger.debug(f"skipping malformed amass line: {line!r}")
                continue
            hosts.append(line)
            self.display.log(f"Amass discovered: {line}", "SUCCESS")

        if not hosts:
            self.display.log(f"Amass completed but found no subdomains for {domain}", "WARNING")
        return hosts
