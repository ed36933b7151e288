"""
TCP connect prober using plain connect() without crafting raw packets.
A probe only opens and immediately closes the connection: nothing is sent
or read. Every failure mode folds into a PortResult, so callers never see
an exception from a probe.
"""

import asyncio
import logging
import time
from typing import List, Optional, Sequence

from core.config import settings
from core.models import PortResult, PortStatus

log = logging.getLogger(__name__)

MIN_TIMEOUT_MS = 1000


def effective_timeout_s(timeout_ms: Optional[int] = None) -> float:
    """Requested timeout in seconds, never below the 1s floor."""
    requested = settings.probe_timeout_ms if timeout_ms is None else timeout_ms
    return max(requested, MIN_TIMEOUT_MS) / 1000.0


async def _close(writer: asyncio.StreamWriter) -> None:
    writer.close()
    try:
        await writer.wait_closed()
    except OSError:
        pass


async def tcp_probe(ip: str, port: int, timeout_ms: Optional[int] = None) -> PortResult:
    timeout = effective_timeout_s(timeout_ms)
    t0 = time.monotonic()
    try:
        _, writer = await asyncio.wait_for(asyncio.open_connection(ip, port), timeout=timeout)
    except asyncio.TimeoutError:
        status = PortStatus.FILTERED
    except ConnectionRefusedError:
        status = PortStatus.CLOSED
    except OSError as exc:
        log.debug("probe %s:%s failed: %s", ip, port, exc)
        status = PortStatus.FILTERED
    except Exception:  # noqa: BLE001
        log.debug("probe %s:%s failed unexpectedly", ip, port, exc_info=True)
        status = PortStatus.FILTERED
    else:
        latency_ms = int(round((time.monotonic() - t0) * 1000))
        await _close(writer)
        log.debug("probe %s:%s open in %dms", ip, port, latency_ms)
        return PortResult(port=port, status=PortStatus.OPEN, latency_ms=latency_ms)

    log.debug("probe %s:%s %s", ip, port, status.value)
    return PortResult(port=port, status=status)


async def scan_ports(
    ip: str,
    ports: Sequence[int],
    timeout_ms: Optional[int] = None,
    concurrency: Optional[int] = None,
) -> List[PortResult]:
    """
    Probe each port once with at most `concurrency` connects in flight.
    Probes are independent: a slow or filtered port never cancels its
    siblings. Results come back in request order, not completion order.
    """
    if not ports:
        return []
    limit = max(1, min(concurrency or settings.probe_concurrency, len(ports)))
    sem = asyncio.Semaphore(limit)

    async def _bounded(port: int) -> PortResult:
        async with sem:
            return await tcp_probe(ip, port, timeout_ms=timeout_ms)

    return list(await asyncio.gather(*(_bounded(p) for p in ports)))
