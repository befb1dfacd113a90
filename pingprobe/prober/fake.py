# pingprobe/prober/fake.py
import asyncio
from typing import Optional, Tuple

from pingprobe.config import Settings
from pingprobe.errors import EchoFailed, TransportError
from pingprobe.prober.base import Session
from pingprobe.schemas import EchoReply, IPAddress


class FakeSession(Session):
    """
    script keys (all optional):
      open_error   -> TransportError message raised on construction
      send_error   -> EchoFailed message raised by send()
      reply_error  -> EchoFailed message raised by receive()
      hang         -> receive() never completes
      ttl, rtt, source -> fields of the scripted reply
    With an empty script every probe gets a 1ms reply with ttl 64.
    """

    def __init__(self, ip: IPAddress, identifier: int, settings: Optional[Settings] = None, script=None):
        super().__init__(ip, identifier)
        self.settings = settings or Settings()
        self.script = dict(script or {})
        if self.script.get("open_error"):
            raise TransportError(f"Failed to create client: {self.script['open_error']}")
        self.sent = []          # (sequence, payload) pairs
        self.closed = False

    def send(self, sequence: int, payload: bytes) -> None:
        if self.script.get("send_error"):
            raise EchoFailed(self.script["send_error"])
        self.sent.append((sequence, payload))

    async def receive(self, sequence: int) -> Tuple[EchoReply, float]:
        if self.script.get("hang"):
            await asyncio.Event().wait()
        await asyncio.sleep(0)
        if self.script.get("reply_error"):
            raise EchoFailed(self.script["reply_error"])

        _, payload = self.sent[-1]
        reply = EchoReply(
            source=self.script.get("source", str(self.ip)),
            identifier=self.identifier,
            sequence=sequence,
            ttl=self.script.get("ttl", 64),
            version=self.version,
            size=len(payload),
        )
        return reply, self.script.get("rtt", 0.001)

    def close(self) -> None:
        self.closed = True


def fake_factory(script=None, opened=None):
    """Session factory for probe(); every session it builds is appended to `opened`."""
    def factory(ip, identifier, settings=None):
        session = FakeSession(ip, identifier, settings, script=script)
        if opened is not None:
            opened.append(session)
        return session
    return factory
