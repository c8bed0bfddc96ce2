# astrace/enrich/lookup.py
"""
Single-address lookups used around the trace: ASN ownership (via ipwhois,
which queries Team Cymru over DNS/whois/HTTP), reverse DNS, and target
hostname resolution.
"""

import ipaddress
import logging
import socket
from typing import List, Optional

from ipwhois.asn import IPASN
from ipwhois.exceptions import (
    ASNLookupError,
    ASNParseError,
    ASNRegistryError,
    HTTPLookupError,
    IPDefinedError,
    WhoisLookupError,
)
from ipwhois.net import Net

from astrace.errors import LookupFailure, TargetResolutionError
from astrace.schemas import ASInfo, NO_DATA

logger = logging.getLogger(__name__)

# values Team Cymru uses for "not available"
SENTINELS = ("", "NA", "N/A", "None")


def _field(value) -> str:
    if value is None:
        return ""
    value = str(value).strip()
    return "" if value in SENTINELS else value


class IPWhoisLookup:
    """Callable returning the ASInfo owning an address; raises LookupFailure on transport errors."""

    def __init__(self, timeout: float = 5.0, retries: int = 1):
        self.timeout = timeout
        self.retries = retries

    @classmethod
    def from_settings(cls, settings) -> "IPWhoisLookup":
        return cls(timeout=settings.lookup_timeout, retries=settings.lookup_retries)

    def __call__(self, address: str) -> ASInfo:
        logger.debug("ASN lookup for %s", address)
        try:
            net = Net(address, timeout=self.timeout)
            result = IPASN(net).lookup(retry_count=self.retries)
        except (IPDefinedError, ASNRegistryError, ASNLookupError, ASNParseError,
                HTTPLookupError, WhoisLookupError, ValueError, OSError) as e:
            raise LookupFailure(f"ASN lookup for {address} failed: {e}") from e
        return parse_asn_result(result)


def parse_asn_result(result: Optional[dict]) -> ASInfo:
    """Map an ipwhois ASN result to ASInfo; missing or sentinel fields give NO_DATA."""
    if not result:
        return NO_DATA
    asn = _field(result.get("asn"))
    # multi-origin prefixes come back as "123 456"; keep the first origin
    asn = asn.split()[0] if asn else ""
    if not asn.isdigit():
        return NO_DATA
    return ASInfo.resolved(
        asn=int(asn),
        name=_field(result.get("asn_description")),
        route=_field(result.get("asn_cidr")),
    )


def reverse_dns(address: str) -> Optional[str]:
    try:
        return socket.gethostbyaddr(address)[0]
    except (OSError, UnicodeError):
        return None


def is_ip_address(value: str) -> bool:
    try:
        ipaddress.ip_address(value)
    except ValueError:
        return False
    return True


def canonical_address(value: str) -> str:
    """The address as mtr prints it (lower case, compressed IPv6)."""
    try:
        return str(ipaddress.ip_address(value))
    except ValueError:
        return value


def resolve_host(name: str) -> List[str]:
    """Every address the name resolves to, in resolver order, without duplicates."""
    if is_ip_address(name):
        return [canonical_address(name)]
    try:
        infos = socket.getaddrinfo(name, None, type=socket.SOCK_STREAM)
    except (OSError, UnicodeError) as e:
        raise TargetResolutionError(f"could not resolve {name}: {e}") from e

    addresses = []
    for info in infos:
        addr = canonical_address(info[4][0])
        if addr not in addresses:
            addresses.append(addr)
    if not addresses:
        raise TargetResolutionError(f"could not resolve {name}: no addresses")
    return addresses
