"""
Port allow-list policy. Only a fixed set of well-known service ports may be
probed, at most MAX_PORTS per scan.
"""

from typing import List

from core.errors import InvalidPorts

ALLOWED_PORTS = (21, 22, 25, 53, 80, 110, 143, 443, 465, 587, 993, 995, 8080)
MAX_PORTS = 20


def _coerce_port(value) -> int:
    if isinstance(value, bool):
        raise InvalidPorts("Ports must be numeric")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        try:
            return int(value.strip())
        except ValueError:
            # superscripts such as "²" pass isdigit() but not int()
            raise InvalidPorts("Ports must be numeric") from None
    raise InvalidPorts("Ports must be numeric")


def validate_ports(ports) -> List[int]:
    """
    Normalize a requested port list: coerce, dedupe keeping first-seen
    order, then enforce the count limit and the allow-list.
    Running it on its own output returns the same list.
    """
    if not isinstance(ports, (list, tuple)):
        raise InvalidPorts("Ports must be an array")
    unique = list(dict.fromkeys(_coerce_port(p) for p in ports))
    if not unique:
        raise InvalidPorts("At least one port is required")
    if len(unique) > MAX_PORTS:
        raise InvalidPorts(f"Cannot scan more than {MAX_PORTS} ports")
    if any(p not in ALLOWED_PORTS for p in unique):
        raise InvalidPorts("Ports must be in the allowed list")
    return unique
