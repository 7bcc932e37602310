"""FastAPI application factory and setup."""

import time
import uuid
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.userhub.api.http.app_data import ApplicationDependencies
from src.userhub.api.http.deps import client_ip, require_api_key
from src.userhub.api.http.results import ApiResult
from src.userhub.api.http.routers import auth, health, sessions, users
from src.userhub.api.utils.app_startup import configure_logging
from src.userhub.core.errors import (
    ApiError,
    InternalError,
    MethodNotAllowed,
    NotFound,
    SchemaValidationFailed,
)
from src.userhub.core.security import PasswordHasher
from src.userhub.core.services import DbSessionService, RedisService
from src.userhub.core.storage.session_storage import get_session_storage
from src.userhub.runtime.context import get_config

configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    await startup(app)
    try:
        yield
    finally:
        await shutdown(app)


async def startup(app: FastAPI) -> None:
    """Create the process-wide collaborators and attach them to ``app.state``."""
    config = get_config()
    logger.info("Starting up application in {} environment", config.app.environment)

    database_service = DbSessionService()
    if config.database.is_sqlite:
        database_service.create_all()

    redis_service = RedisService()
    session_storage = await get_session_storage(redis_service.get_client())

    app.state.app_dependencies = ApplicationDependencies(
        database_service=database_service,
        redis_service=redis_service,
        session_storage=session_storage,
        password_hasher=PasswordHasher(config.security.password_hashing),
    )


async def shutdown(app: FastAPI) -> None:
    logger.info("Shutting down application")
    app_dependencies: ApplicationDependencies = app.state.app_dependencies
    await app_dependencies.session_storage.cleanup_expired()
    await app_dependencies.redis_service.close()
    app_dependencies.database_service.dispose()


async def log_requests(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    base_ctx = {
        "request_id": request_id,
        "method": request.method,
        "path": request.url.path,
        "client_ip": client_ip(request) or "unknown",
    }

    start = time.perf_counter()
    with logger.contextualize(**base_ctx):
        try:
            logger.info("request.start")
            response = await call_next(request)
        except Exception as exc:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.bind(
                status_code=500,
                duration_ms=round(duration_ms, 1),
                error_type=type(exc).__name__,
            ).exception("request.error")
            return ApiResult.fail(InternalError.from_exception(exc)).to_response(
                headers={"X-Request-ID": request_id}
            )

        duration_ms = (time.perf_counter() - start) * 1000
        logger.bind(
            status_code=response.status_code,
            duration_ms=round(duration_ms, 1),
        ).info("request.end")
        response.headers.setdefault("X-Request-ID", request_id)
        return response


async def handle_api_error(request: Request, exc: ApiError):
    if exc.status_code >= 500:
        logger.error("{}: {}", exc.error_name, exc.message)
    else:
        logger.debug("{} ({}): {}", exc.error_name, exc.error_code, exc.message)
    return ApiResult.fail(exc).to_response()


async def handle_validation_error(request: Request, exc: RequestValidationError):
    detail = [
        {
            "field": ".".join(str(part) for part in error["loc"][1:]) or error["loc"][0],
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    return ApiResult.fail(SchemaValidationFailed(detail=detail)).to_response()


async def handle_http_error(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 405:
        error = MethodNotAllowed()
    elif exc.status_code == 404:
        error = NotFound()
    else:
        return ApiResult(
            exc.status_code,
            {
                "code": exc.status_code,
                "error_code": str(exc.status_code),
                "error_name": "HTTP_ERROR",
                "error_message": str(exc.detail),
            },
        ).to_response()
    return ApiResult.fail(error).to_response()


def create_app() -> FastAPI:
    config = get_config()
    is_production = config.app.environment == "production"

    app = FastAPI(
        title="userhub",
        lifespan=lifespan,
        docs_url=None if is_production else "/docs",
        redoc_url=None if is_production else "/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.app.cors.origins,
        allow_credentials=config.app.cors.allow_credentials,
        allow_methods=config.app.cors.allow_methods,
        allow_headers=config.app.cors.allow_headers,
    )
    app.middleware("http")(log_requests)

    app.add_exception_handler(ApiError, handle_api_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)

    protected = [Depends(require_api_key)]
    for router in (users.router, sessions.router, auth.router):
        app.include_router(router, prefix=config.app.api_prefix, dependencies=protected)
    app.include_router(health.router)

    @app.head("/", include_in_schema=False)
    async def availability() -> Response:
        return Response(status_code=200)

    return app


app = create_app()

__all__ = ["app", "create_app", "startup", "shutdown"]


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=get_config().app.host,
        port=get_config().app.port,
        access_log=False,
    )
