# astrace/errors.py


class TraceError(Exception):
    """Base class for fatal and absorbed errors raised by astrace."""


class ProbeLaunchError(TraceError):
    """The probing binary is missing, cannot be started, or died before producing output."""


class ProbeStreamError(TraceError):
    """Reading the probe output failed mid-stream."""


class LookupFailure(TraceError):
    """An ownership or hostname lookup returned nothing usable."""


class TargetResolutionError(TraceError):
    """The trace target could not be resolved to an address."""
