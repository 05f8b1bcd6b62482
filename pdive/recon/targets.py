import ipaddress
import logging
import socket

logger = logging.getLogger("pdive.targets")


def parse_target_argument(value):
    """Split a ``-t`` value like ``"10.0.0.1, example.com,10.0.0.0/30"``."""
    if not value:
        return []
    return [t.strip() for t in value.split(",") if t.strip()]


def load_targets_from_file(path):
    """One target per line. Blank lines and ``#`` comments are skipped."""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            lines = f.read().splitlines()
    except FileNotFoundError:
        raise FileNotFoundError(f"target file not found: {path}")

    targets = []
    for line in lines:
        line = line.strip()
        if line and not line.startswith("#"):
            targets.append(line)
    return targets


def is_ip(value):
    try:
        ipaddress.ip_address(value)
        return True
    except ValueError:
        return False


def is_cidr(value):
    if "/" not in value:
        return False
    try:
        ipaddress.ip_network(value, strict=False)
        return True
    except ValueError:
        return False


def resolves(hostname):
    try:
        return bool(socket.getaddrinfo(hostname, None))
    except (socket.gaierror, UnicodeError, OSError):
        return False


def is_valid_target(target, resolver=resolves):
    if not target:
        return False
    if is_cidr(target) or is_ip(target):
        return True
    return resolver(target)


def validate(targets, resolver=resolves):
    """Returns ``(valid, invalid)`` preserving input order."""
    valid, invalid = [], []
    for target in targets:
        if is_valid_target(target, resolver):
            valid.append(target)
        else:
            invalid.append(target)
    if invalid:
        logger.warning(f"Invalid targets dropped: {', '.join(invalid)}")
    return valid, invalid


def dedupe(items):
    """Drop repeats, keep first-seen order."""
    seen = set()
    result = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result


def expand(targets):
    """
    Flatten targets into single-host scan units.

    A CIDR block yields every address it masks in ascending order, network
    and broadcast included. Anything else passes through untouched.
    """
    hosts = []
    for target in targets:
        if is_cidr(target):
            network = ipaddress.ip_network(target, strict=False)
            hosts.extend(str(ip) for ip in network)
        else:
            hosts.append(target)
    return dedupe(hosts)


def extract_domain(target):
    """Domain-like targets only. IPs and CIDR blocks give None."""
    target = (target or "").strip()
    if not target or is_ip(target) or is_cidr(target):
        return None
    return target.lower()
