# astrace/brain/rules.py
import ipaddress
from typing import Dict, Iterable, List, Optional, Tuple

from astrace.brain.state import HopRecord
from astrace.schemas import ASInfo

PRIVATE_NETWORKS = tuple(ipaddress.ip_network(n) for n in (
    "127.0.0.0/8",
    "10.0.0.0/8",
    "172.16.0.0/12",
    "192.168.0.0/16",
    "::1/128",
    "fc00::/7",
))


def is_private(address: str) -> bool:
    try:
        ip = ipaddress.ip_address(address)
    except ValueError:
        return False
    return any(ip.version == net.version and ip in net for net in PRIVATE_NETWORKS)


def path_entry(info: ASInfo) -> str:
    """AS<n> [<first comma-separated token of the AS name>]"""
    short = info.name.split(",")[0].strip()
    return f"AS{info.asn} [{short}]"


def collapse_as_path(entries: Iterable[str]) -> List[str]:
    """
    Drop entries equal to the one right before them. Only the immediately
    preceding kept entry is compared, so A, B, A stays A, B, A.
    """
    path: List[str] = []
    for entry in entries:
        if path and path[-1] == entry:
            continue
        path.append(entry)
    return path


def build_as_path(hops: Iterable[Tuple[int, Optional[HopRecord]]], infos: Dict[int, ASInfo]) -> List[str]:
    entries = []
    for index, record in hops:
        info = infos.get(index)
        if record is None or info is None or not info.is_resolved:
            continue
        entries.append(path_entry(info))
    return collapse_as_path(entries)
