"""
FastAPI surface exposing the single scan operation.
Errors are always answered as {"error": message}; the browser client shows
that text verbatim.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.config import settings
from core.errors import RateLimited, ScanError
from core.models import ScanRequest
from pipeline.orchestrator import Orchestrator
from policy.port_policy import ALLOWED_PORTS, MAX_PORTS

log = logging.getLogger(__name__)

router = APIRouter()


def _client_id(request: Request) -> str:
    if settings.trust_forwarded_for:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


@router.post("/scan")
@router.post("/api/scan")
async def api_scan(request: Request, payload: Optional[ScanRequest] = None):
    # no body behaves like {}
    if payload is None:
        payload = ScanRequest()
    orch: Orchestrator = request.app.state.orchestrator
    try:
        result = await orch.scan(_client_id(request), payload.target, payload.ports)
    except ScanError:
        raise
    except Exception:  # noqa: BLE001
        log.exception("scan failed")
        return JSONResponse(status_code=500, content={"error": "scan failed"})
    return result.to_dict()


@router.options("/{path:path}")
def api_options():
    headers = {
        "Access-Control-Allow-Methods": "POST, OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type",
    }
    if "*" in settings.cors_allow_origins:
        headers["Access-Control-Allow-Origin"] = "*"
    return Response(status_code=204, headers=headers)


@router.get("/api/health")
def api_health():
    return {"status": "ok", "allowed_ports": list(ALLOWED_PORTS), "max_ports": MAX_PORTS}


async def _scan_error(request: Request, exc: ScanError) -> JSONResponse:
    headers = None
    if isinstance(exc, RateLimited) and exc.retry_after is not None:
        headers = {"Retry-After": str(max(1, math.ceil(exc.retry_after)))}
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message}, headers=headers)


async def _invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": "Invalid request"})


async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = "Not found" if exc.status_code == 404 else str(exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"error": message}, headers=exc.headers)


def create_app(orchestrator: Optional[Orchestrator] = None) -> FastAPI:
    app = FastAPI(title="portgate", version="1.0")
    app.state.orchestrator = orchestrator or Orchestrator()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    app.add_exception_handler(ScanError, _scan_error)
    app.add_exception_handler(RequestValidationError, _invalid_body)
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.include_router(router)
    return app


app = create_app()
