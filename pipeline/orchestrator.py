"""
Scan orchestrator: admission -> validation -> resolution -> probing.
All validation happens before any socket is opened, so a rejected request
has no network side effects.
"""

import asyncio
import logging
from typing import Optional, Sequence

from core.authz_scope import resolve_target
from core.errors import RateLimited
from core.models import ScanResult
from policy.port_policy import validate_ports
from policy.rate_limiter import RateLimiter
from probers import l4_tcp

log = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests: wait {window:g} seconds between scans."


class Orchestrator:
    def __init__(
        self,
        limiter: Optional[RateLimiter] = None,
        timeout_ms: Optional[int] = None,
        concurrency: Optional[int] = None,
    ) -> None:
        self.limiter = limiter if limiter is not None else RateLimiter()
        self.timeout_ms = timeout_ms
        self.concurrency = concurrency

    def _ensure_admitted(self, client_id: str) -> None:
        if not self.limiter.admit(client_id):
            retry_after = self.limiter.retry_after(client_id)
            log.warning("rate limited client %s (retry in %.1fs)", client_id, retry_after)
            raise RateLimited(RATE_LIMIT_MESSAGE.format(window=self.limiter.window_s), retry_after=retry_after)

    async def scan(self, client_id: str, target, ports) -> ScanResult:
        self._ensure_admitted(client_id)
        # ports first: cheap and local, DNS only after it passes
        valid_ports = validate_ports(ports)
        resolved = await resolve_target(target)

        log.info("scan %s (%s) ports=%s client=%s", resolved.hostname, resolved.address, valid_ports, client_id)
        results = await l4_tcp.scan_ports(
            resolved.address,
            valid_ports,
            timeout_ms=self.timeout_ms,
            concurrency=self.concurrency,
        )
        summary = {}
        for r in results:
            summary[r.status.value] = summary.get(r.status.value, 0) + 1
        log.info("scan %s done: %s", resolved.hostname, summary)

        return ScanResult(target=resolved.hostname, ip=resolved.address, results=results)


def run_single(
    target: str,
    ports: Sequence[int],
    timeout_ms: Optional[int] = None,
    client_id: str = "cli",
) -> ScanResult:
    orch = Orchestrator(timeout_ms=timeout_ms)
    return asyncio.run(orch.scan(client_id, target, ports))
