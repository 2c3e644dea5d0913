"""Public IP address validation.

The checks here are pattern based on purpose: an address is public when it
looks like a dotted-quad IPv4 address or a fully written-out (8 group) IPv6
address and does not start with a private, loopback, link-local or
unique-local prefix. Compressed IPv6 notation (``::``) is not accepted.
"""

import re

IPV4_MAPPED_PREFIX = "::ffff:"

_IPV4_PATTERN = re.compile(r"^(\d{1,3})\.(\d{1,3})\.(\d{1,3})\.(\d{1,3})$")
_IPV6_PATTERN = re.compile(r"^([0-9a-fA-F]{1,4}:){7}[0-9a-fA-F]{1,4}$")

_NON_PUBLIC_PATTERNS = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"^127\.",  # loopback
        r"^10\.",  # RFC1918 class A
        r"^172\.(1[6-9]|2[0-9]|3[01])\.",  # RFC1918 class B
        r"^192\.168\.",  # RFC1918 class C
        r"^169\.254\.",  # RFC3927 link-local
        r"^::1$",  # IPv6 loopback
        r"^fe80:",  # IPv6 link-local
        r"^fc00:",  # RFC4193 unique local
        r"^fd00:",  # RFC4193 unique local
    )
)


def strip_ipv4_mapped_prefix(value: str) -> str:
    """Remove a leading ``::ffff:`` from an IPv4-mapped IPv6 address."""
    if value.lower().startswith(IPV4_MAPPED_PREFIX):
        return value[len(IPV4_MAPPED_PREFIX) :]
    return value


def _is_well_formed(value: str) -> bool:
    match = _IPV4_PATTERN.match(value)
    if match:
        return all(int(octet) <= 255 for octet in match.groups())
    return bool(_IPV6_PATTERN.match(value))


def is_valid_public_ip(value: object) -> bool:
    """Return True if ``value`` is a routable public IPv4/IPv6 address string."""
    if not isinstance(value, str) or not value:
        return False

    candidate = strip_ipv4_mapped_prefix(value.strip())
    if not _is_well_formed(candidate):
        return False

    return not any(pattern.match(candidate) for pattern in _NON_PUBLIC_PATTERNS)
