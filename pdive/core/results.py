import copy
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Dict, List, Optional

VERSION = "2.0"
SCANNER_NAME = f"PDive v{VERSION}"


@dataclass
class PortRecord:
    """A single open TCP port. Closed/filtered ports are never stored."""
    port: int
    state: str = "open"
    service: str = ""


@dataclass
class HostRecord:
    host: str
    status: str = "up"
    ports: List[PortRecord] = field(default_factory=list)

    def port_numbers(self):
        return {p.port for p in self.ports}


@dataclass
class ScanInfo:
    targets: List[str]
    start_time: datetime
    scanner: str = SCANNER_NAME
    discovery_mode: str = "active"


@dataclass
class ScanState:
    """Read-only view of a run, handed to the report layer."""
    scan_info: ScanInfo
    hosts: Dict[str, HostRecord] = field(default_factory=dict)
    unresponsive_hosts: int = 0

    @property
    def total_ports(self) -> int:
        return sum(len(h.ports) for h in self.hosts.values())

    def to_dict(self):
        data = asdict(self)
        data["scan_info"]["start_time"] = self.scan_info.start_time.isoformat()
        data["hosts"] = list(data["hosts"].values())
        return data


class ReadWriteLock:
    """Many readers or one writer. A waiting writer blocks new readers."""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read_locked(self):
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextmanager
    def write_locked(self):
        with self._cond:
            self._writers_waiting += 1
            while self._writer or self._readers:
                self._cond.wait()
            self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class ResultStore:
    """
    The single shared aggregate of hosts and ports for one run.

    Every scanning phase writes through this object from worker threads.
    Mutations take the write side of the lock, reads take the read side.
    Never call into the network while holding either.
    """

    def __init__(self, targets, mode="active", start_time=None):
        self.lock = ReadWriteLock()
        self._info = ScanInfo(
            targets=list(targets),
            start_time=start_time or datetime.now(),
            discovery_mode=mode,
        )
        self._hosts: Dict[str, HostRecord] = {}
        self._unresponsive = 0

    # --- writers ---

    def add_host(self, host, status="up") -> bool:
        """Insert ``host`` if unknown. Returns True when a record was created."""
        with self.lock.write_locked():
            if host in self._hosts:
                return False
            self._hosts[host] = HostRecord(host=host, status=status)
            return True

    def add_hosts(self, hosts, status="up") -> int:
        created = 0
        with self.lock.write_locked():
            for host in hosts:
                if host not in self._hosts:
                    self._hosts[host] = HostRecord(host=host, status=status)
                    created += 1
        return created

    def replace_ports(self, host, ports):
        """Authoritative write for one scan pass: the host's ports become ``ports``."""
        fresh = _dedupe(ports)
        with self.lock.write_locked():
            record = self._hosts.get(host)
            if record is None:
                record = self._hosts[host] = HostRecord(host=host, status="up")
            record.ports = fresh

    def merge_ports(self, host, ports, status="up") -> int:
        """Append ports not yet recorded for ``host``. Returns how many were added."""
        added = 0
        with self.lock.write_locked():
            record = self._hosts.get(host)
            if record is None:
                record = self._hosts[host] = HostRecord(host=host, status=status)
            known = record.port_numbers()
            for p in ports:
                if p.port in known:
                    continue
                record.ports.append(PortRecord(p.port, p.state, p.service))
                known.add(p.port)
                added += 1
        return added

    def set_service(self, host, port, service) -> bool:
        with self.lock.write_locked():
            record = self._hosts.get(host)
            if record is None:
                return False
            for p in record.ports:
                if p.port == port:
                    p.service = service
                    return True
        return False

    def set_unresponsive(self, count):
        with self.lock.write_locked():
            self._unresponsive = max(0, int(count))

    # --- readers ---

    def __contains__(self, host):
        with self.lock.read_locked():
            return host in self._hosts

    def __len__(self):
        with self.lock.read_locked():
            return len(self._hosts)

    def host_names(self) -> List[str]:
        with self.lock.read_locked():
            return list(self._hosts)

    def get_host(self, host) -> Optional[HostRecord]:
        with self.lock.read_locked():
            record = self._hosts.get(host)
            return copy.deepcopy(record) if record else None

    def ports_for(self, host) -> List[PortRecord]:
        with self.lock.read_locked():
            record = self._hosts.get(host)
            if record is None:
                return []
            return [PortRecord(p.port, p.state, p.service) for p in record.ports]

    def hosts_with_ports(self, hosts=None) -> Dict[str, List[PortRecord]]:
        wanted = set(hosts) if hosts is not None else None
        with self.lock.read_locked():
            return {
                name: [PortRecord(p.port, p.state, p.service) for p in rec.ports]
                for name, rec in self._hosts.items()
                if rec.ports and (wanted is None or name in wanted)
            }

    @property
    def unresponsive_hosts(self) -> int:
        with self.lock.read_locked():
            return self._unresponsive

    def total_ports(self) -> int:
        with self.lock.read_locked():
            return sum(len(h.ports) for h in self._hosts.values())

    def snapshot(self) -> ScanState:
        with self.lock.read_locked():
            return ScanState(
                scan_info=copy.deepcopy(self._info),
                hosts=copy.deepcopy(self._hosts),
                unresponsive_hosts=self._unresponsive,
            )


def _dedupe(ports):
    seen = set()
    unique = []
    for p in ports:
        if p.port in seen:
            continue
        seen.add(p.port)
        unique.append(PortRecord(p.port, p.state, p.service))
    return unique
