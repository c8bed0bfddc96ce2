# astrace/brain/state.py
from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional, Tuple


@dataclass
class HopRecord:
    index: int
    address: str
    rounds: int
    hostname: Optional[str] = None
    latency_sum: int = 0     # microseconds
    samples: int = 0         # informational; the average always divides by rounds

    @property
    def avg_ms(self) -> float:
        return self.latency_sum / self.rounds / 1000

    @property
    def display_host(self) -> str:
        if self.hostname:
            return f"{self.hostname} ({self.address})"
        return self.address


@dataclass
class TraceState:
    target: str
    rounds: int
    records: Dict[int, HopRecord] = field(default_factory=dict)
    max_hop: int = 0
    finalized: bool = False
    stop_reason: Optional[str] = None    # "eof" | "stream_error" | "cancelled"
    events_seen: int = 0
    # single-slot cache: the last address seen anywhere in the stream
    last_address: Optional[str] = None
    last_hostname: Optional[str] = None

    def finalize(self, reason: str):
        if not self.finalized:
            self.finalized = True
            self.stop_reason = reason

    def hops(self, target_address: Optional[str] = None) -> Iterator[Tuple[int, Optional[HopRecord]]]:
        """
        Yield (index, record) for every index from 1 to max_hop, with None for
        indices that never got a reply. Stops after the hop whose address is
        target_address.
        """
        for index in range(1, self.max_hop + 1):
            record = self.records.get(index)
            yield index, record
            if record is not None and target_address and record.address == target_address:
                return
