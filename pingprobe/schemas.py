# pingprobe/schemas.py
from dataclasses import dataclass
from ipaddress import IPv4Address, IPv6Address
from typing import Optional, TypedDict, Union

IPAddress = Union[IPv4Address, IPv6Address]


class ProbeResultDict(TypedDict):
    host: str
    ip: str
    bytes: int
    icmp_seq: int
    ttl: Optional[int]
    time: float            # milliseconds
    success: bool
    error: Optional[str]


@dataclass(frozen=True)
class ProbeRequest:
    host: str
    ip: IPAddress
    payload: bytes
    sequence: int
    identifier: int


@dataclass(frozen=True)
class EchoReply:
    source: str
    identifier: int
    sequence: int
    ttl: Optional[int]
    version: int
    size: int = 0          # ICMP payload length of the reply


# --- probe outcomes: exactly one is produced per exchange ---

@dataclass(frozen=True)
class Matched:
    packet: EchoReply
    round_trip: float      # seconds, as measured by the session


@dataclass(frozen=True)
class ProtocolError:
    message: str
    sent: bool = True


@dataclass(frozen=True)
class TimedOut:
    pass


ProbeOutcome = Union[Matched, ProtocolError, TimedOut]


@dataclass(frozen=True)
class ProbeResult:
    """
    Result of one echo probe.

    success is True iff error is None; ttl is only ever set on success and
    time_ms is 0.0 whenever no reply was received.
    """
    host: str
    ip: str
    bytes: int
    sequence: int
    ttl: Optional[int]
    time_ms: float
    success: bool
    error: Optional[str] = None

    def as_dict(self) -> ProbeResultDict:
        return {
            "host": self.host,
            "ip": self.ip,
            "bytes": self.bytes,
            "icmp_seq": self.sequence,
            "ttl": self.ttl,
            "time": self.time_ms,
            "success": self.success,
            "error": self.error,
        }
