# tests/test_executor_unit.py
import asyncio
import ipaddress
import time

import pytest

from pingprobe.executor import ProbeExecutor, ProbeState
from pingprobe.prober.fake import FakeSession
from pingprobe.schemas import Matched, ProbeRequest, ProtocolError, TimedOut

IP = ipaddress.ip_address("127.0.0.1")


def make_request():
    return ProbeRequest(host="localhost", ip=IP, payload=bytes(56), sequence=1, identifier=4242)


def run(executor, script=None):
    session = FakeSession(IP, 4242, script=script)
    return asyncio.run(executor.execute(session, make_request())), session


def test_reply_is_matched():
    ex = ProbeExecutor(timeout=1.0)
    outcome, session = run(ex, {"rtt": 0.0025, "ttl": 61})
    assert isinstance(outcome, Matched)
    assert outcome.round_trip == 0.0025     # taken from the session, not re-measured
    assert outcome.packet.ttl == 61
    assert session.sent == [(1, bytes(56))]
    assert ex.state is ProbeState.MATCHED


def test_transport_error_message_is_verbatim():
    ex = ProbeExecutor(timeout=1.0)
    outcome, _ = run(ex, {"reply_error": "Destination host unreachable from 10.0.0.1"})
    assert outcome == ProtocolError("Destination host unreachable from 10.0.0.1", sent=True)
    assert ex.state is ProbeState.ERRORED


def test_send_failure_never_reaches_sent():
    ex = ProbeExecutor(timeout=1.0)
    outcome, session = run(ex, {"send_error": "[Errno 101] Network is unreachable"})
    assert outcome == ProtocolError("[Errno 101] Network is unreachable", sent=False)
    assert session.sent == []
    assert ex.state is ProbeState.ERRORED


def test_deadline_produces_timeout():
    """A silent peer times out close to the deadline, not instantly and not forever."""
    ex = ProbeExecutor(timeout=0.2)
    t0 = time.monotonic()
    outcome, _ = run(ex, {"hang": True})
    elapsed = time.monotonic() - t0
    assert isinstance(outcome, TimedOut)
    assert ex.state is ProbeState.TIMED_OUT
    assert 0.15 <= elapsed < 2.0


def test_executor_is_single_use():
    ex = ProbeExecutor(timeout=1.0)
    run(ex)
    with pytest.raises(RuntimeError):
        run(ex)


def test_outside_cancel_stops_the_receive():
    """A caller-imposed bound cancels the exchange without leaving a reader behind."""
    ex = ProbeExecutor(timeout=5.0)
    session = FakeSession(IP, 4242, script={"hang": True})

    async def main():
        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(ex.execute(session, make_request()), 0.05)
        return [t for t in asyncio.all_tasks() if t is not asyncio.current_task()]

    leftover = asyncio.run(main())
    assert leftover == []
    assert ex.state is ProbeState.SENT
