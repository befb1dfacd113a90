# pingprobe/errors.py


class PingError(Exception):
    """Base class for everything pingprobe raises."""


class ResolutionError(PingError):
    """The host string could not be turned into an address."""


class TransportError(PingError):
    """The ICMP socket could not be opened (usually missing privilege)."""


class EchoFailed(PingError):
    """The echo exchange was attempted but the network reported a failure."""
