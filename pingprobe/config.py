# pingprobe/config.py
from dataclasses import dataclass

PAYLOAD_SIZE = 56        # standard ping payload
PING_TIMEOUT_S = 5.0
ICMP_SEQUENCE = 1
TIMEOUT_MESSAGE = "Timeout"


@dataclass
class Settings:
    timeout_s: float = PING_TIMEOUT_S
    payload_size: int = PAYLOAD_SIZE
    sequence: int = ICMP_SEQUENCE

    # datagram ICMP sockets are tried first; raw sockets need CAP_NET_RAW/root
    use_raw: bool = True
    recv_bufsize: int = 2048
