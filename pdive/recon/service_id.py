import logging

import requests
import urllib3

urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

DESCRIPTION = "Service identification (port map + HTTP Server header)"

SERVICE_MAP = {
    21: "ftp", 22: "ssh", 23: "telnet", 25: "smtp", 53: "dns",
    80: "http", 110: "pop3", 135: "rpc", 139: "netbios", 143: "imap",
    443: "https", 993: "imaps", 995: "pop3s", 1723: "pptp",
    3306: "mysql", 3389: "rdp", 5432: "postgresql", 5900: "vnc",
    8080: "http-alt", 8443: "https-alt",
}

# service label -> URL scheme
HTTP_SERVICES = {"http": "http", "http-alt": "http", "https": "https", "https-alt": "https"}


def build_url(host, port, scheme):
    if ":" in host and not host.startswith("["):
        host = f"[{host}]"
    if (scheme, port) in (("http", 80), ("https", 443)):
        return f"{scheme}://{host}"
    return f"{scheme}://{host}:{port}"


def fetch_server_header(url, timeout=5):
    """Single GET, no retry. Returns the Server header or None."""
    try:
        r = requests.get(url, timeout=timeout, verify=False,
                         headers={"User-Agent": "Mozilla/5.0 (compatible; PDive/2.0)"})
        try:
            return r.headers.get("Server") or None
        finally:
            r.close()
    except requests.RequestException:
        return None


class ServiceIdentifier:
    def __init__(self, store, display, timeout=5, fetcher=None):
        self.store = store
        self.display = display
        self.timeout = timeout
        self.fetcher = fetcher or fetch_server_header
        self.logger = logging.getLogger("pdive.services")

    def label(self, host, port):
        service = SERVICE_MAP.get(port)
        if service is None:
            return "unknown"

        scheme = HTTP_SERVICES.get(service)
        if scheme:
            server = self.fetcher(build_url(host, port, scheme), self.timeout)
            if server:
                return f"{service} ({server})"
        return service

    def identify(self, hosts):
        self.display.log(f"Running {DESCRIPTION}...", "INFO")
        for host in hosts:
            # ports_for() hands back copies, so the HTTP probe runs without the store lock
            for record in self.store.ports_for(host):
                service = self.label(host, record.port)
                self.store.set_service(host, record.port, service)
                self.logger.info(f"{host}:{record.port} -> {service}")
                self.display.log(f"Service identified: {host}:{record.port} -> {service}", "SUCCESS")
