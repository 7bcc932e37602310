"""Endpoints addressing a single session by its token."""

from fastapi import APIRouter, Depends
from starlette.responses import JSONResponse

from src.userhub.api.http.deps import get_session_service
from src.userhub.api.http.results import ApiResult
from src.userhub.api.http.schemas import SessionDataUpdate
from src.userhub.core.services import SessionService

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.get("/{token}")
async def get_session(
    token: str,
    sessions: SessionService = Depends(get_session_service),
) -> JSONResponse:
    session = await sessions.get(token)
    return ApiResult.ok({"session": session.public()}).to_response()


@router.put("/{token}/data")
async def update_session_data(
    token: str,
    body: SessionDataUpdate,
    sessions: SessionService = Depends(get_session_service),
) -> JSONResponse:
    data = await sessions.update_data(token, body.data)
    return ApiResult.ok({"data": data}).to_response()


@router.delete("/{token}")
async def delete_session(
    token: str,
    sessions: SessionService = Depends(get_session_service),
) -> JSONResponse:
    """Revoke a session; revoking an unknown session reports ``kill: 0``."""
    return ApiResult.ok({"kill": await sessions.delete(token)}).to_response()
