"""
HTTP API
========

[API] FastAPI adapter around LoginService.

Routes:
- POST /api/oauth/zkp                 {"zkpCode": "...", "affCode": "..."}
- GET  /api/zkp/status/{zkp_hash}     hash status + fail-closed validity
- GET  /api/zkp/membership/{address}  club membership flags
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from auth.login import LoginRequest
from auth.service import LoginService
from core.errors import MembershipError, StatusError

logger = logging.getLogger(__name__)


async def _read_login_request(request: Request) -> LoginRequest:
    """Malformed bodies become a request with no proof text (-> INVALID_PAYLOAD)."""
    try:
        body = await request.json()
    except ValueError:
        return LoginRequest(proof_text=None)

    if not isinstance(body, dict):
        return LoginRequest(proof_text=None)

    aff_code = body.get("affCode") or ""
    if not isinstance(aff_code, str):
        return LoginRequest(proof_text=None)

    return LoginRequest(proof_text=body.get("zkpCode"), affiliate_code=aff_code)


def create_app(service: LoginService) -> FastAPI:
    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        await service.accounts.initialize()
        logger.info("[API] ZKP login API ready")
        yield
        await service.close()

    app = FastAPI(title="ZKP Login", docs_url=None, redoc_url=None, lifespan=lifespan)
    app.state.service = service

    @app.post("/api/oauth/zkp")
    async def zkp_login(request: Request):
        login_request = await _read_login_request(request)
        result = await service.orchestrator.login(login_request)
        return JSONResponse(status_code=result.http_status, content=result.to_dict())

    @app.get("/api/zkp/status/{zkp_hash}")
    async def zkp_status(zkp_hash: str) -> Dict[str, Any]:
        try:
            status = await asyncio.to_thread(service.status_checker.status, zkp_hash)
        except StatusError as e:
            logger.warning(f"[API] Status query failed for {zkp_hash}: {e}")
            return {"success": True, "data": {"valid": False, "error": str(e)}}

        return {
            "success": True,
            "data": {
                "valid": status.exists and status.is_active,
                "is_active": status.is_active,
                "deployer": status.deployer,
                "exists": status.exists,
            },
        }

    @app.get("/api/zkp/membership/{address}")
    async def zkp_membership(address: str) -> Dict[str, Any]:
        club = service.membership.club_name
        try:
            status = await asyncio.to_thread(service.membership.check, address, club)
        except MembershipError as e:
            raise HTTPException(status_code=502, detail=str(e))

        return {"success": True, "data": {"club": club, **status.to_dict()}}

    return app
