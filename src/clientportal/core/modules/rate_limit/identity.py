"""Identity strings used as the per-client half of a rate-limit key."""

import ipaddress
from uuid import UUID

UNKNOWN_ADDRESS = "unknown"


def user_identity(user_id: UUID) -> str:
    return f"user:{user_id}"


def address_identity(raw: str | None) -> str:
    return f"ip:{normalize_address(raw)}"


def normalize_address(raw: str | None) -> str:
    """Canonical text form of an IP address, so spelling variants share one counter.

    IPv4-mapped IPv6 addresses collapse to IPv4. Anything unparseable maps
    to a single shared "unknown" bucket.
    """
    if not raw:
        return UNKNOWN_ADDRESS
    candidate = raw.strip()
    if candidate.startswith("[") and "]" in candidate:  # [2001:db8::1]:443
        candidate = candidate[1 : candidate.index("]")]
    elif candidate.count(":") == 1:  # 203.0.113.7:8080
        candidate = candidate.split(":", 1)[0]
    try:
        address = ipaddress.ip_address(candidate)
    except ValueError:
        return UNKNOWN_ADDRESS
    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped is not None:
        return str(address.ipv4_mapped)
    return str(address)
