# astrace/brain/aggregator.py

import logging
from typing import Callable, Optional

from astrace.brain.state import HopRecord, TraceState
from astrace.enrich.lookup import reverse_dns
from astrace.errors import ProbeStreamError
from astrace.schemas import HostEvent, LatencyEvent

logger = logging.getLogger(__name__)


class HopAggregator:
    def __init__(self, prober, settings, reverse_lookup: Optional[Callable[[str], Optional[str]]] = reverse_dns):
        self.prober = prober
        self.s = settings
        self.reverse_lookup = reverse_lookup if settings.reverse_dns else None

    def run(self, target: str, on_first_event: Optional[Callable[[], None]] = None) -> TraceState:
        state = TraceState(target=target, rounds=self.s.rounds)
        events = self.prober.events(target)

        try:
            for ev in events:
                if state.events_seen == 0 and on_first_event is not None:
                    on_first_event()
                state.events_seen += 1
                if isinstance(ev, HostEvent):
                    self._on_host(state, ev)
                elif isinstance(ev, LatencyEvent):
                    self._on_latency(state, ev)
            state.finalize("eof")
        except ProbeStreamError as e:
            # best effort: keep whatever was collected so far
            logger.warning("probe stream ended early: %s", e)
            state.finalize("stream_error")
        except KeyboardInterrupt:
            state.finalize("cancelled")
            raise
        finally:
            events.close()

        logger.debug("trace finalized (%s): %d hops, %d events",
                     state.stop_reason, len(state.records), state.events_seen)
        return state

    def _on_host(self, state: TraceState, ev: HostEvent):
        record = state.records.get(ev.hop)
        if record is None:
            record = HopRecord(index=ev.hop, address=ev.address, rounds=state.rounds)
            state.records[ev.hop] = record
        elif record.address != ev.address:
            record.address = ev.address
            record.hostname = None
        state.max_hop = max(state.max_hop, ev.hop)

        # Same address as the previous host line (mtr repeats the final hop):
        # reuse the cached answer instead of looking it up again.
        if ev.address == state.last_address:
            if state.last_hostname:
                record.hostname = state.last_hostname
            return
        state.last_address = ev.address
        state.last_hostname = None

        if self.reverse_lookup is not None:
            hostname = self.reverse_lookup(ev.address)
            if hostname:
                record.hostname = hostname
                state.last_hostname = hostname

    def _on_latency(self, state: TraceState, ev: LatencyEvent):
        record = state.records.get(ev.hop)
        if record is None:
            logger.debug("latency for hop %d before any host line, ignored", ev.hop)
            return
        record.latency_sum += ev.usec
        record.samples += 1
