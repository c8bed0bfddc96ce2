from dataclasses import dataclass
from typing import Literal, Optional, Union

ASStatus = Literal["resolved", "private", "nodata"]


@dataclass(frozen=True)
class HostEvent:
    hop: int        # 1-based
    address: str


@dataclass(frozen=True)
class LatencyEvent:
    hop: int
    usec: int


ProbeEvent = Union[HostEvent, LatencyEvent]


@dataclass(frozen=True)
class ASInfo:
    status: ASStatus
    asn: Optional[int] = None
    name: str = ""
    route: str = ""

    @classmethod
    def resolved(cls, asn: int, name: str, route: str = "") -> "ASInfo":
        return cls("resolved", asn, name, route)

    @property
    def is_resolved(self) -> bool:
        return self.status == "resolved"


PRIVATE = ASInfo("private")
NO_DATA = ASInfo("nodata")
