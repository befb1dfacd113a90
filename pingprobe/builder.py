# pingprobe/builder.py
from pingprobe.config import TIMEOUT_MESSAGE
from pingprobe.schemas import Matched, ProbeOutcome, ProbeRequest, ProbeResult, ProtocolError, TimedOut


def _failure(request: ProbeRequest, message: str, sent: bool) -> ProbeResult:
    return ProbeResult(
        host=request.host,
        ip=str(request.ip),
        bytes=len(request.payload) if sent else 0,
        sequence=request.sequence,
        ttl=None,
        time_ms=0.0,
        success=False,
        error=message,
    )


def build_result(request: ProbeRequest, outcome: ProbeOutcome) -> ProbeResult:
    """Map a probe outcome onto the public result record. Total over ProbeOutcome."""
    if isinstance(outcome, Matched):
        packet = outcome.packet
        return ProbeResult(
            host=request.host,
            # where the reply came from, not the address we asked for
            ip=packet.source,
            bytes=len(request.payload),
            sequence=packet.sequence,
            ttl=packet.ttl,
            time_ms=outcome.round_trip * 1000.0,
            success=True,
        )
    if isinstance(outcome, ProtocolError):
        return _failure(request, outcome.message, outcome.sent)
    if isinstance(outcome, TimedOut):
        return _failure(request, TIMEOUT_MESSAGE, sent=True)
    raise TypeError(f"unknown probe outcome {outcome!r}")
