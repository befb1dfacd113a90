# pingprobe/prober/base.py
from abc import ABC, abstractmethod
from typing import Tuple

from pingprobe.schemas import EchoReply, IPAddress


class Session(ABC):
    """
    One ICMP echo exchange towards a single address.
    Sessions are opened per probe and closed afterwards, never shared.
    """

    def __init__(self, ip: IPAddress, identifier: int):
        self.ip = ip
        self.identifier = identifier

    @property
    def version(self) -> int:
        return self.ip.version

    @abstractmethod
    def send(self, sequence: int, payload: bytes) -> None:
        """Transmit one echo request and start the round-trip clock. Raises EchoFailed."""
        raise NotImplementedError

    @abstractmethod
    async def receive(self, sequence: int) -> Tuple[EchoReply, float]:
        """Wait for the matching reply; returns (packet, round trip in seconds). Raises EchoFailed."""
        raise NotImplementedError

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
