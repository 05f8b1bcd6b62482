from dataclasses import dataclass, field, fields
from typing import List

DISCOVERY_PORTS = [80, 443, 22, 21, 25, 53, 135, 139, 445]
COMMON_PORTS = [21, 22, 23, 25, 53, 80, 110, 111, 135, 139, 143, 443, 993, 995,
                1723, 3306, 3389, 5432, 5900, 8080, 8443]

MODES = ("active", "passive")


@dataclass
class ScanConfig:
    threads: int = 50
    output_dir: str = "recon_output"
    mode: str = "active"

    # per-probe hard timeouts, seconds
    ping_timeout: float = 2.0
    connect_timeout: float = 3.0
    http_timeout: float = 5.0
    amass_timeout: float = 60.0
    masscan_timeout: float = 300.0

    masscan_rate: int = 1000
    masscan_ports: str = "1-65535"

    discovery_ports: List[int] = field(default_factory=lambda: list(DISCOVERY_PORTS))
    common_ports: List[int] = field(default_factory=lambda: list(COMMON_PORTS))

    # phase ceilings applied on top of ``threads``
    discovery_ceiling: int = 20
    port_ceiling: int = 50

    def __post_init__(self):
        self.threads = max(1, int(self.threads))
        if self.mode not in MODES:
            raise ValueError(f"Unknown discovery mode {self.mode!r} (expected one of {', '.join(MODES)})")

    @classmethod
    def from_settings(cls, settings=None, **overrides):
        """Defaults < settings.json ``scan`` section < explicit overrides (CLI)."""
        known = {f.name for f in fields(cls)}
        values = {}
        section = (settings or {}).get("scan", {})
        if isinstance(section, dict):
            values.update({k: v for k, v in section.items() if k in known})
        values.update({k: v for k, v in overrides.items() if k in known and v is not None})
        return cls(**values)
