# pingprobe/ping.py
import asyncio
import logging
import random
from typing import Optional

from pingprobe.builder import build_result
from pingprobe.config import Settings
from pingprobe.executor import ProbeExecutor
from pingprobe.prober.icmp import IcmpSession
from pingprobe.resolver import Lookup, resolve_host
from pingprobe.schemas import ProbeRequest, ProbeResult

logger = logging.getLogger(__name__)


def new_identifier(rng: Optional[random.Random] = None) -> int:
    return (rng or random).randrange(0x10000)


async def probe(host: str,
                *,
                settings: Optional[Settings] = None,
                rng: Optional[random.Random] = None,
                lookup: Optional[Lookup] = None,
                session_factory=IcmpSession) -> ProbeResult:
    """
    Send a single ICMP echo request to `host` and report what happened.

    Raises ResolutionError or TransportError when nothing could be sent.
    Replies, timeouts and network errors all come back as a ProbeResult.
    """
    s = settings or Settings()

    ip = await resolve_host(host, lookup=lookup)

    request = ProbeRequest(
        host=host,
        ip=ip,
        payload=bytes(s.payload_size),
        sequence=s.sequence,
        identifier=new_identifier(rng),
    )

    with session_factory(ip, request.identifier, s) as session:
        outcome = await ProbeExecutor(s.timeout_s).execute(session, request)

    result = build_result(request, outcome)
    logger.debug("probe %s (%s): success=%s time=%.3fms error=%s",
                  host, result.ip, result.success, result.time_ms, result.error)
    return result


def probe_sync(host: str, **kwargs) -> ProbeResult:
    return asyncio.run(probe(host, **kwargs))
