# astrace/enrich/resolver.py
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, Iterable, Optional, Tuple

from astrace.brain.rules import is_private
from astrace.brain.state import HopRecord
from astrace.errors import LookupFailure
from astrace.schemas import ASInfo, NO_DATA, PRIVATE

logger = logging.getLogger(__name__)


class EnrichmentResolver:
    """
    Decides the ASInfo of each hop address.

    Private addresses never reach the lookup, and the trace target reuses the
    ASInfo already resolved for it. Lookup failures degrade to NO_DATA.
    """

    def __init__(self, lookup: Callable[[str], ASInfo],
                 target_address: Optional[str] = None,
                 target_info: Optional[ASInfo] = None):
        self.lookup = lookup
        self.target_address = target_address
        self.target_info = target_info

    def resolve(self, address: str) -> ASInfo:
        if is_private(address):
            return PRIVATE
        if self.target_info is not None and address == self.target_address:
            return self.target_info
        try:
            info = self.lookup(address)
        except LookupFailure as e:
            logger.warning("%s", e)
            return NO_DATA
        return info if info is not None else NO_DATA

    def resolve_hops(self, hops: Iterable[Tuple[int, Optional[HopRecord]]], workers: int = 1) -> Dict[int, ASInfo]:
        """Resolve every present hop; the result is keyed by hop index."""
        present = [(index, record.address) for index, record in hops if record is not None]
        if workers <= 1 or len(present) <= 1:
            return {index: self.resolve(address) for index, address in present}

        pool = ThreadPoolExecutor(max_workers=workers)
        try:
            futures = {index: pool.submit(self.resolve, address) for index, address in present}
            infos = {index: futures[index].result() for index, _ in present}
        except BaseException:
            # interrupted: drop queued lookups instead of waiting for them
            pool.shutdown(wait=False, cancel_futures=True)
            raise
        pool.shutdown()
        return infos
