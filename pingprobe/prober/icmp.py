# pingprobe/prober/icmp.py
import asyncio
import logging
import socket
import struct
import sys
import time
from typing import Optional, Tuple

from pingprobe.config import Settings
from pingprobe.errors import EchoFailed, TransportError
from pingprobe.prober.base import Session
from pingprobe.prober.packets import build_echo_request, parse_reply
from pingprobe.schemas import EchoReply, IPAddress

logger = logging.getLogger(__name__)

# not every Python build exports these; the Linux values are stable
IP_RECVTTL = getattr(socket, "IP_RECVTTL", 12 if sys.platform.startswith("linux") else None)
IPV6_RECVHOPLIMIT = getattr(socket, "IPV6_RECVHOPLIMIT", None)
IPV6_HOPLIMIT = getattr(socket, "IPV6_HOPLIMIT", None)

TTL_CMSGS = {
    pair for pair in (
        (socket.IPPROTO_IP, socket.IP_TTL),
        (socket.IPPROTO_IP, IP_RECVTTL),
        (socket.IPPROTO_IPV6, IPV6_HOPLIMIT),
    ) if pair[1] is not None
}
ANCBUFSIZE = 64


def open_icmp_socket(family: int, sock_type: int, proto: int) -> socket.socket:
    return socket.socket(family, sock_type, proto)


def ancillary_ttl(ancdata) -> Optional[int]:
    for level, kind, data in ancdata:
        if (level, kind) not in TTL_CMSGS or not data:
            continue
        # Linux hands out an int, BSDs a single byte
        if len(data) == 1:
            return data[0]
        return struct.unpack("i", data[:4])[0]
    return None


class IcmpSession(Session):
    """
    Echo session over an ICMP socket of the address' own family.

    An unprivileged datagram ICMP socket is tried first, then a raw socket
    (when settings.use_raw). Failing both raises TransportError.
    """

    def __init__(self, ip: IPAddress, identifier: int, settings: Optional[Settings] = None):
        super().__init__(ip, identifier)
        self.settings = settings or Settings()
        self.kind: Optional[str] = None
        self._sent_at: Optional[float] = None
        # identifier actually carried on the wire; datagram sockets get theirs from the kernel
        self._wire_id = identifier
        self._sock: Optional[socket.socket] = None
        self._sock = self._open_socket()

    def _open_socket(self) -> socket.socket:
        if self.version == 4:
            family, proto = socket.AF_INET, socket.IPPROTO_ICMP
        else:
            family, proto = socket.AF_INET6, socket.IPPROTO_ICMPV6

        tries = [("dgram", socket.SOCK_DGRAM)]
        if self.settings.use_raw:
            tries.append(("raw", socket.SOCK_RAW))

        last_err: Optional[OSError] = None
        for kind, sock_type in tries:
            try:
                sock = open_icmp_socket(family, sock_type, proto)
            except OSError as e:
                logger.debug("%s ICMPv%d socket refused: %s", kind, self.version, e)
                last_err = e
                continue
            sock.setblocking(False)
            self._request_ttl(sock)
            self.kind = kind
            logger.debug("opened %s ICMPv%d socket for %s", kind, self.version, self.ip)
            return sock

        raise TransportError(f"Failed to create client: {last_err}") from last_err

    def _request_ttl(self, sock: socket.socket) -> None:
        if self.version == 4:
            option = (socket.IPPROTO_IP, IP_RECVTTL)
        else:
            option = (socket.IPPROTO_IPV6, IPV6_RECVHOPLIMIT)
        if option[1] is None:
            return
        try:
            sock.setsockopt(option[0], option[1], 1)
        except OSError as e:
            # replies still match, they just carry no ttl
            logger.debug("ttl reporting unavailable: %s", e)

    def send(self, sequence: int, payload: bytes) -> None:
        packet = build_echo_request(self.version, self.identifier, sequence, payload)
        self._sent_at = time.perf_counter()
        try:
            self._sock.sendto(packet, (str(self.ip), 0))
        except OSError as e:
            raise EchoFailed(str(e)) from e

        if self.kind == "dgram":
            port = self._sock.getsockname()[1]
            if port:
                self._wire_id = port

    async def receive(self, sequence: int) -> Tuple[EchoReply, float]:
        if self._sent_at is None:
            raise RuntimeError("receive() called before send()")

        loop = asyncio.get_running_loop()
        waiter = loop.create_future()
        fd = self._sock.fileno()
        loop.add_reader(fd, self._on_readable, waiter, sequence)
        try:
            return await waiter
        finally:
            loop.remove_reader(fd)

    def _on_readable(self, waiter: asyncio.Future, sequence: int) -> None:
        if waiter.done():
            return
        try:
            data, ancdata, _, address = self._sock.recvmsg(self.settings.recv_bufsize, ANCBUFSIZE)
        except (BlockingIOError, InterruptedError):
            return
        except OSError as e:
            waiter.set_exception(EchoFailed(str(e)))
            return
        received_at = time.perf_counter()

        try:
            reply = parse_reply(data, self.version, address[0], self._wire_id, sequence,
                                ttl=ancillary_ttl(ancdata))
        except EchoFailed as e:
            waiter.set_exception(e)
            return

        if reply is None:
            logger.debug("ignoring %d bytes from %s", len(data), address[0])
            return
        waiter.set_result((reply, received_at - self._sent_at))

    def close(self) -> None:
        if self._sock is not None:
            try:
                self._sock.close()
            finally:
                self._sock = None
