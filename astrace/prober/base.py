# astrace/prober/base.py
from abc import ABC, abstractmethod
from typing import Iterator, Optional

from astrace.schemas import HostEvent, LatencyEvent, ProbeEvent


def parse_raw_line(line: str) -> Optional[ProbeEvent]:
    """
    Decode one `mtr --raw` line into an event, or None if it is not one we use.

    Lines look like `<type> <pos> <value> ...` where pos is mtr's 0-based hop
    position. Only `h` (host address) and `p` (reply time in microseconds) are
    interpreted.
    """
    parts = line.split()
    if len(parts) < 3 or parts[0] not in ("h", "p"):
        return None
    try:
        hop = int(parts[1]) + 1
    except ValueError:
        return None
    if hop < 1:
        return None

    if parts[0] == "h":
        return HostEvent(hop=hop, address=parts[2])
    try:
        usec = int(parts[2])
    except ValueError:
        return None
    return LatencyEvent(hop=hop, usec=usec)


class Prober(ABC):
    @abstractmethod
    def events(self, target: str) -> Iterator[ProbeEvent]:
        """Run the probe against target and yield events until its output ends."""
        raise NotImplementedError
