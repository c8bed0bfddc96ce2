# astrace/prober/fake.py
from typing import Iterable, Iterator, Union

from astrace.errors import ProbeStreamError
from astrace.prober.base import Prober, parse_raw_line
from astrace.schemas import ProbeEvent


class FakeProber(Prober):
    """
    script: iterable of raw mtr lines (str) or ready-made events, replayed in order.
    Strings go through the same decoder as the real prober, so unknown lines are dropped.
    If fail_after is set, fail_with (default ProbeStreamError) is raised after that many
    script items, e.g. fail_after=0 fails before anything is produced.
    """
    def __init__(self, script: Iterable[Union[str, ProbeEvent]] = (), fail_after=None,
                 fail_with=ProbeStreamError):
        self.script = list(script)
        self.fail_after = fail_after
        self.fail_with = fail_with
        self.targets = []
        self.closed = False

    def events(self, target: str) -> Iterator[ProbeEvent]:
        self.targets.append(target)
        try:
            items = self.script if self.fail_after is None else self.script[:self.fail_after]
            for item in items:
                event = parse_raw_line(item) if isinstance(item, str) else item
                if event is not None:
                    yield event
            if self.fail_after is not None:
                raise self.fail_with("scripted probe failure")
        finally:
            self.closed = True
