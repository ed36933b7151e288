"""
Shared data models for the scan request/response cycle.
Lightweight on purpose: Request -> ResolvedTarget + ports -> PortResult -> ScanResult.
"""

from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


def utc_timestamp() -> str:
    now = dt.datetime.now(dt.timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class PortStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"
    FILTERED = "filtered"


class ScanRequest(BaseModel):
    # loosely typed: validate_ports / resolve_target own the error messages
    target: Any = None
    ports: Any = None


class ResolvedTarget(BaseModel):
    model_config = ConfigDict(frozen=True)

    hostname: str
    address: str


class PortResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    port: int
    status: PortStatus
    latency_ms: Optional[int] = Field(None, ge=0)


class ScanResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    target: str
    ip: str
    results: Tuple[PortResult, ...] = ()
    timestamp: str = Field(default_factory=utc_timestamp)

    def to_dict(self) -> Dict[str, Any]:
        """Wire form: enum values as strings, latency_ms only where measured."""
        return self.model_dump(mode="json", exclude_none=True)
