import os
from dataclasses import dataclass, fields

ENV_PREFIX = "ASTRACE_"


@dataclass
class Settings:
    mtr_bin: str = "mtr"
    rounds: int = 5
    max_hops: int = 30
    use_sudo: bool = False

    # ownership lookups (ipwhois); every call is bounded by lookup_timeout
    lookup_timeout: float = 5.0
    lookup_retries: int = 1
    lookup_workers: int = 1     # >1 resolves hops concurrently after the trace ends

    reverse_dns: bool = True
    log_level: str = "WARNING"

    def __post_init__(self):
        for name in ("rounds", "max_hops", "lookup_workers"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be at least 1, got {getattr(self, name)}")

    @classmethod
    def from_env(cls, environ=None) -> "Settings":
        """Build settings from defaults overridden by ASTRACE_* variables."""
        environ = os.environ if environ is None else environ
        values = {}
        for f in fields(cls):
            raw = environ.get(ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            if f.type in (bool, "bool"):
                values[f.name] = raw not in ("0", "false", "False", "no", "")
            elif f.type in (int, "int"):
                values[f.name] = int(raw)
            elif f.type in (float, "float"):
                values[f.name] = float(raw)
            else:
                values[f.name] = raw
        return cls(**values)
