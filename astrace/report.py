# astrace/report.py
"""
Text rendering for a finished trace. Everything here is a pure function of
the finalized hop list, their ASInfo and the collapsed AS path.
"""

from typing import Dict, List, Optional, Sequence, Tuple

from astrace.brain.state import HopRecord
from astrace.schemas import ASInfo, NO_DATA

COLLECTING = "Collecting trace data..."
ARROW = " ➜ "
DESTINATION = "◉"
NO_REPLY_HOST = "*"
NO_REPLY_LATENCY = "*"
NO_REPLY_STATUS = "(no reply)"
MIN_HOST_WIDTH = 20


def as_status(info: ASInfo) -> str:
    if info.status == "private":
        return "(private)"
    if info.status == "nodata":
        return "(no data)"
    return f"[AS{info.asn}] {info.name}".rstrip()


def render_as_path(entries: Sequence[str]) -> str:
    return "AS path: " + ARROW.join(list(entries) + [DESTINATION])


def _row_cells(record: Optional[HopRecord], info: Optional[ASInfo]) -> Tuple[str, str, str]:
    if record is None:
        return NO_REPLY_HOST, NO_REPLY_LATENCY, NO_REPLY_STATUS
    return record.display_host, f"{record.avg_ms:.1f} ms", as_status(info or NO_DATA)


def render_hop_row(index: int, record: Optional[HopRecord], info: Optional[ASInfo],
                   host_width: int = MIN_HOST_WIDTH) -> str:
    host, latency, status = _row_cells(record, info)
    return f"{index:>3}  {host:<{host_width}}  {latency:>10}  {status}"


def render_hop_table(hops: Sequence[Tuple[int, Optional[HopRecord]]], infos: Dict[int, ASInfo]) -> List[str]:
    host_width = max([MIN_HOST_WIDTH] + [len(r.display_host) for _, r in hops if r is not None])
    lines = [f"{'Hop':>3}  {'Host':<{host_width}}  {'Latency':>10}  AS"]
    for index, record in hops:
        lines.append(render_hop_row(index, record, infos.get(index), host_width))
    return lines


def render_report(hops: Sequence[Tuple[int, Optional[HopRecord]]], infos: Dict[int, ASInfo],
                  as_path: Sequence[str]) -> str:
    """
    hops must already be the finalized, gap-filled list ending at the terminal
    hop (see TraceState.hops).
    """
    lines = [render_as_path(as_path), ""]
    lines.extend(render_hop_table(hops, infos))
    return "\n".join(lines)


def render_target(target: str, address: str, info: ASInfo, other_addresses: Sequence[str] = ()) -> str:
    lines = []
    if target != address:
        lines.append(f"Target: {target} ({address})")
    else:
        lines.append(f"Target: {address}")
    if other_addresses:
        lines.append("  also resolves to: " + ", ".join(other_addresses))
    lines.append(f"  AS: {as_status(info)}")
    if info.is_resolved and info.route:
        lines.append(f"  Route: {info.route}")
    return "\n".join(lines)
