from fastapi import APIRouter, Depends, Request
from starlette.responses import JSONResponse

from src.userhub.api.http.deps import client_ip, get_auth_service
from src.userhub.api.http.results import ApiResult
from src.userhub.api.http.schemas import AuthRequest
from src.userhub.core.services import AuthService

router = APIRouter(tags=["auth"])


@router.post("/auth")
async def authenticate(
    body: AuthRequest,
    request: Request,
    auth: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    """Verify an account and password, issuing a session unless mode is ``none``."""
    result = await auth.authenticate(
        body.account,
        body.password,
        body.session_opts.to_options(client_ip(request)),
    )
    return ApiResult.ok(result).to_response()
