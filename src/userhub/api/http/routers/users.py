"""User directory endpoints, including the sessions owned by a user."""

import asyncio

from fastapi import APIRouter, Depends, Query, Request
from starlette.responses import JSONResponse

from src.userhub.api.http.deps import (
    client_ip,
    get_password_hasher,
    get_session_service,
    get_user_directory,
)
from src.userhub.api.http.results import ApiResult
from src.userhub.api.http.schemas import (
    PasswordUpdate,
    SessionCreate,
    UserCreate,
    UserUpdate,
    split_csv,
)
from src.userhub.core.security import PasswordHasher
from src.userhub.core.services import (
    ResolveMode,
    SessionService,
    UserDirectoryService,
    UserQuery,
)

router = APIRouter(prefix="/users", tags=["users"])


@router.get("")
def query_users(
    id: str | None = Query(default=None, description="One id, or several separated by commas"),
    phone: str | None = None,
    email: str | None = None,
    page_index: int | None = Query(default=None, alias="pageIndex", ge=1),
    page_size: int | None = Query(default=None, alias="pageSize", ge=1, le=100),
    fields: str | None = Query(default=None, description="Comma separated field names"),
    directory: UserDirectoryService = Depends(get_user_directory),
) -> JSONResponse:
    page = directory.query(
        UserQuery(
            ids=split_csv(id),
            phone=phone,
            email=email,
            page_index=page_index,
            page_size=page_size,
            fields=split_csv(fields),
        )
    )
    return ApiResult.ok(page.to_dict()).to_response()


@router.post("")
def create_user(
    body: UserCreate,
    directory: UserDirectoryService = Depends(get_user_directory),
    hasher: PasswordHasher = Depends(get_password_hasher),
) -> JSONResponse:
    password_hash = hasher.hash(body.password) if body.password else None
    user = directory.create(body.changes(), password_hash=password_hash)
    return ApiResult.ok({"user": user}).to_response()


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    fields: str | None = Query(default=None, description="Comma separated field names"),
    directory: UserDirectoryService = Depends(get_user_directory),
) -> JSONResponse:
    """Fetch a user by id, phone, email or session token."""
    user = await directory.get_user(user_id, split_csv(fields))
    return ApiResult.ok({"user": user}).to_response()


@router.patch("/{user_id}")
def update_user(
    user_id: str,
    body: UserUpdate,
    directory: UserDirectoryService = Depends(get_user_directory),
) -> JSONResponse:
    user = directory.update(user_id, body.changes())
    return ApiResult.ok({"user": user}).to_response()


@router.delete("/{user_id}")
def delete_user(
    user_id: str,
    directory: UserDirectoryService = Depends(get_user_directory),
) -> JSONResponse:
    return ApiResult.ok({"deleted": directory.delete(user_id)}).to_response()


@router.patch("/{user_id}/password")
async def update_password(
    user_id: str,
    body: PasswordUpdate,
    directory: UserDirectoryService = Depends(get_user_directory),
    hasher: PasswordHasher = Depends(get_password_hasher),
) -> JSONResponse:
    user = await directory.update_password(
        user_id,
        body.old_password,
        await asyncio.to_thread(hasher.hash, body.new_password),
        revoke_sessions=body.revoke_sessions,
    )
    return ApiResult.ok({"user": user}).to_response()


@router.get("/{user_id}/sessions")
async def list_user_sessions(
    user_id: str,
    sessions: SessionService = Depends(get_session_service),
) -> JSONResponse:
    found = await sessions.list_by_owner(user_id)
    return ApiResult.ok({"sessions": [s.public() for s in found]}).to_response()


@router.post("/{user_id}/sessions")
async def create_user_session(
    user_id: str,
    request: Request,
    body: SessionCreate | None = None,
    directory: UserDirectoryService = Depends(get_user_directory),
    sessions: SessionService = Depends(get_session_service),
) -> JSONResponse:
    user = await asyncio.to_thread(directory.resolve, user_id, ResolveMode.OBJECT_ID_ONLY)
    options = (body or SessionCreate()).to_options(client_ip(request))
    session = await sessions.create(user.id, options)
    return ApiResult.ok({"session": session.model_dump()}).to_response()


@router.delete("/{user_id}/sessions")
async def delete_user_sessions(
    user_id: str,
    sessions: SessionService = Depends(get_session_service),
) -> JSONResponse:
    return ApiResult.ok({"kill": await sessions.delete_all_by_owner(user_id)}).to_response()
