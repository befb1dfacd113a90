# pingprobe/executor.py
import asyncio
import enum
import logging

from pingprobe.config import PING_TIMEOUT_S
from pingprobe.errors import EchoFailed
from pingprobe.prober.base import Session
from pingprobe.schemas import Matched, ProbeOutcome, ProbeRequest, ProtocolError, TimedOut

logger = logging.getLogger(__name__)


class ProbeState(enum.Enum):
    IDLE = "idle"
    SENT = "sent"
    MATCHED = "matched"
    ERRORED = "errored"
    TIMED_OUT = "timed_out"


class ProbeExecutor:
    """
    Drives exactly one echo exchange:

        IDLE -> SENT -> MATCHED | ERRORED | TIMED_OUT
        IDLE -> ERRORED               (the request never left the socket)

    The receive is raced against a fixed deadline with asyncio.wait(); when the
    deadline wins the receive task is cancelled locally, nothing goes on the wire.
    """

    def __init__(self, timeout: float = PING_TIMEOUT_S):
        self.timeout = timeout
        self.state = ProbeState.IDLE

    async def execute(self, session: Session, request: ProbeRequest) -> ProbeOutcome:
        if self.state is not ProbeState.IDLE:
            raise RuntimeError(f"executor already used (state={self.state.value})")

        try:
            session.send(request.sequence, request.payload)
        except EchoFailed as e:
            self.state = ProbeState.ERRORED
            logger.debug("send to %s failed: %s", request.ip, e)
            return ProtocolError(str(e), sent=False)
        self.state = ProbeState.SENT

        receiver = asyncio.ensure_future(session.receive(request.sequence))
        try:
            done, _ = await asyncio.wait({receiver}, timeout=self.timeout)
        except asyncio.CancelledError:
            # cancelled from outside: stop reading before the session is closed
            receiver.cancel()
            await asyncio.wait({receiver})
            raise

        if not done:
            receiver.cancel()
            # wait for the cancellation so the session is quiet before it is closed
            await asyncio.wait({receiver})
            self.state = ProbeState.TIMED_OUT
            logger.debug("no reply from %s within %.1fs", request.ip, self.timeout)
            return TimedOut()

        try:
            packet, round_trip = receiver.result()
        except EchoFailed as e:
            self.state = ProbeState.ERRORED
            logger.debug("echo to %s failed: %s", request.ip, e)
            return ProtocolError(str(e))

        self.state = ProbeState.MATCHED
        return Matched(packet, round_trip)
