"""Uniform response envelope for every API outcome."""

from dataclasses import dataclass
from typing import Any

from starlette.responses import JSONResponse

from src.userhub.core.errors import ApiError


@dataclass(frozen=True)
class ApiResult:
    """Either ``{"code": 200, "data": ...}`` or the body of an :class:`ApiError`."""

    status_code: int
    body: dict[str, Any]

    @classmethod
    def ok(cls, data: dict[str, Any]) -> "ApiResult":
        return cls(200, {"code": 200, "data": data})

    @classmethod
    def fail(cls, error: ApiError) -> "ApiResult":
        return cls(error.status_code, error.to_dict())

    @property
    def is_ok(self) -> bool:
        return self.status_code == 200

    def to_response(self, headers: dict[str, str] | None = None) -> JSONResponse:
        return JSONResponse(status_code=self.status_code, content=self.body, headers=headers)
