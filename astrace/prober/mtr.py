# astrace/prober/mtr.py
import logging
import os
import shutil
import subprocess
import tempfile
from typing import Iterator, List

from astrace.errors import ProbeLaunchError, ProbeStreamError
from astrace.prober.base import Prober, parse_raw_line
from astrace.schemas import ProbeEvent

logger = logging.getLogger(__name__)


class MtrProber(Prober):
    """
    Streams `mtr --raw` output for a single target and decodes it line by line.
    mtr runs with a fixed report cycle count and numeric output (-n), so it
    never does its own reverse DNS.
    """

    def __init__(self,
                 mtr_bin: str = "mtr",
                 rounds: int = 5,
                 max_hops: int = 30,
                 use_sudo: bool = False):
        self.mtr = shutil.which(mtr_bin) or mtr_bin
        self.rounds = rounds
        self.max_hops = max_hops
        self.use_sudo = use_sudo
        if not os.path.exists(self.mtr):
            raise ProbeLaunchError(f"mtr binary not found at {self.mtr}")

    @classmethod
    def from_settings(cls, settings) -> "MtrProber":
        return cls(mtr_bin=settings.mtr_bin, rounds=settings.rounds,
                   max_hops=settings.max_hops, use_sudo=settings.use_sudo)

    def _build_cmd(self, target: str) -> List[str]:
        cmd = [self.mtr, "--raw", "-n", "-c", str(self.rounds), "-m", str(self.max_hops), target]
        if self.use_sudo:
            # -n avoids a password prompt; needs a NOPASSWD rule for mtr
            return ["sudo", "-n"] + cmd
        return cmd

    def events(self, target: str) -> Iterator[ProbeEvent]:
        """
        Start mtr right away (launch errors raise here, before any output is
        read) and return an iterator over its events.
        """
        cmd = self._build_cmd(target)
        logger.debug("launching %s", " ".join(cmd))
        # stderr goes to a file so a chatty mtr can never block on a full pipe
        errors = tempfile.TemporaryFile(mode="w+")
        try:
            proc = subprocess.Popen(cmd, stdout=subprocess.PIPE, stderr=errors,
                                    text=True, bufsize=1)
        except OSError as e:
            errors.close()
            raise ProbeLaunchError(f"could not start {self.mtr}: {e}") from e
        return self._read(proc, errors)

    def _read(self, proc, errors) -> Iterator[ProbeEvent]:
        produced = 0
        try:
            try:
                for line in proc.stdout:
                    event = parse_raw_line(line)
                    if event is None:
                        logger.debug("discarding line %r", line.rstrip())
                        continue
                    produced += 1
                    yield event
            except (OSError, ValueError) as e:
                raise ProbeStreamError(f"reading mtr output failed: {e}") from e

            returncode = proc.wait()
            if returncode != 0 and produced == 0:
                errors.seek(0)
                err = errors.read().strip()
                raise ProbeLaunchError(f"mtr exited with status {returncode}: {err or 'no output'}")
        finally:
            if proc.poll() is None:
                proc.terminate()
                proc.wait()
            proc.stdout.close()
            errors.close()
