# pingprobe/prober/packets.py
import struct
from typing import Optional

from pingprobe.errors import EchoFailed
from pingprobe.schemas import EchoReply

ICMP_HEADER = struct.Struct("!BBHHH")   # type, code, checksum, id, seq
IPV6_HEADER_LEN = 40

# (echo request, echo reply, destination unreachable, time exceeded)
ICMPV4_TYPES = (8, 0, 3, 11)
ICMPV6_TYPES = (128, 129, 1, 3)

UNREACH_V4 = {
    0: "Destination network unreachable",
    1: "Destination host unreachable",
    2: "Destination protocol unreachable",
    3: "Destination port unreachable",
    4: "Fragmentation needed",
    9: "Destination network administratively prohibited",
    10: "Destination host administratively prohibited",
    13: "Communication administratively prohibited",
}
UNREACH_V6 = {
    0: "No route to destination",
    1: "Communication administratively prohibited",
    3: "Address unreachable",
    4: "Port unreachable",
    5: "Source address failed policy",
    6: "Reject route to destination",
}


def icmp_types(version: int) -> tuple:
    if version == 4:
        return ICMPV4_TYPES
    if version == 6:
        return ICMPV6_TYPES
    raise ValueError(f"no ICMP variant for IP version {version}")


def checksum(data: bytes) -> int:
    if len(data) % 2:
        data += b"\x00"
    total = sum(struct.unpack("!%dH" % (len(data) // 2), data))
    total = (total >> 16) + (total & 0xFFFF)
    total += total >> 16
    return (~total) & 0xFFFF


def build_echo_request(version: int, identifier: int, sequence: int, payload: bytes) -> bytes:
    """
    Encode an echo request for the given IP version.
    ICMPv6 checksums cover a pseudo-header and are filled in by the kernel.
    """
    echo_request = icmp_types(version)[0]
    header = ICMP_HEADER.pack(echo_request, 0, 0, identifier, sequence)
    if version == 6:
        return header + payload
    csum = checksum(header + payload)
    return ICMP_HEADER.pack(echo_request, 0, csum, identifier, sequence) + payload


def strip_ipv4_header(data: bytes):
    """Return (icmp_bytes, ttl) if data starts with an IPv4 header, else (data, None)."""
    if len(data) >= 20 and data[0] >> 4 == 4:
        ihl = (data[0] & 0x0F) * 4
        return data[ihl:], data[8]
    return data, None


def _quoted_echo(version: int, body: bytes):
    # body is what follows the outer ICMP header of an error message
    if version == 4:
        if len(body) < 20:
            return None
        body = body[(body[0] & 0x0F) * 4:]
    else:
        body = body[IPV6_HEADER_LEN:]
    if len(body) < ICMP_HEADER.size:
        return None
    return ICMP_HEADER.unpack_from(body)


def _error_message(version: int, icmp_type: int, code: int, source: str) -> str:
    _, _, unreach, exceeded = icmp_types(version)
    if icmp_type == unreach:
        table = UNREACH_V4 if version == 4 else UNREACH_V6
        text = table.get(code, f"Destination unreachable (code {code})")
    elif icmp_type == exceeded:
        text = "Time to live exceeded" if version == 4 else "Hop limit exceeded"
    else:
        text = f"ICMP error type {icmp_type} code {code}"
    return f"{text} from {source}"


def parse_reply(data: bytes, version: int, source: str, identifier: int, sequence: int,
                ttl: Optional[int] = None) -> Optional[EchoReply]:
    """
    Decode one received datagram.

    Returns the EchoReply when it answers (identifier, sequence), None when the
    datagram belongs to someone else or can't be decoded, and raises EchoFailed
    when it is an ICMP error quoting our request.
    """
    if version == 4:
        data, header_ttl = strip_ipv4_header(data)
        if header_ttl is not None:
            ttl = header_ttl
    if len(data) < ICMP_HEADER.size:
        return None

    icmp_type, code, _, pkt_id, pkt_seq = ICMP_HEADER.unpack_from(data)
    _, echo_reply, unreach, exceeded = icmp_types(version)

    if icmp_type == echo_reply:
        if pkt_id != identifier or pkt_seq != sequence:
            return None
        return EchoReply(
            source=source,
            identifier=pkt_id,
            sequence=pkt_seq,
            ttl=ttl,
            version=version,
            size=len(data) - ICMP_HEADER.size,
        )

    if icmp_type in (unreach, exceeded):
        quoted = _quoted_echo(version, data[ICMP_HEADER.size:])
        if quoted is None:
            return None
        _, _, _, q_id, q_seq = quoted
        if q_id == identifier and q_seq == sequence:
            raise EchoFailed(_error_message(version, icmp_type, code, source))

    return None
