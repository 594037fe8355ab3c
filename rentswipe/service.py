"""HTTP API exposing RentSwipe signup and login."""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, Optional, TypeVar
from urllib.parse import parse_qs

import anyio
from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, field_validator
from starlette.exceptions import HTTPException as StarletteHTTPException

from .auth import AuthService
from .config import Settings, load_settings
from .database import Database
from .errors import AuthServiceError, InternalError, ValidationError
from .models import UserProfile
from .security import PasswordHasher

logger = logging.getLogger("rentswipe.service")

UNSUPPORTED_CONTENT_TYPE = "Unsupported content-type"
MALFORMED_BODY = "Malformed request body."
NOT_FOUND = "Not found"

_PREFLIGHT_MAX_AGE = "86400"

T = TypeVar("T")


def _coerce_scalar(value: object) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    return str(value)


class SignupRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    full_name: Optional[str] = Field(default=None, alias="fullName")
    email: Optional[str] = None
    password: Optional[str] = None
    account_type: Optional[str] = Field(default=None, alias="accountType")

    @field_validator("*", mode="before")
    @classmethod
    def _as_text(cls, value: object) -> Optional[str]:
        return _coerce_scalar(value)


class LoginRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    email: Optional[str] = None
    password: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def _as_text(cls, value: object) -> Optional[str]:
        return _coerce_scalar(value)


class UserPayload(BaseModel):
    fullName: str
    email: str
    accountType: str


class AuthResponse(BaseModel):
    ok: bool = True
    user: UserPayload

    @classmethod
    def from_profile(cls, profile: UserProfile) -> "AuthResponse":
        return cls(user=UserPayload(**profile.to_dict()))


class ErrorResponse(BaseModel):
    ok: bool = False
    error: str


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


async def _parse_body(request: Request) -> Dict[str, Any]:
    """Decode a JSON or form-encoded request body into a flat mapping."""

    content_type = request.headers.get("content-type", "").lower()
    body_bytes = await request.body()

    if "application/json" in content_type:
        try:
            data = json.loads(body_bytes)
        except (ValueError, UnicodeDecodeError) as exc:
            raise ValidationError(MALFORMED_BODY) from exc
        if not isinstance(data, dict):
            raise ValidationError(MALFORMED_BODY)
        return data

    if "application/x-www-form-urlencoded" in content_type:
        charset = "utf-8"
        if "charset=" in content_type:
            charset = content_type.split("charset=", 1)[1].split(";", 1)[0].strip() or "utf-8"
        try:
            decoded = body_bytes.decode(charset)
        except (LookupError, UnicodeDecodeError):
            decoded = body_bytes.decode("utf-8", errors="ignore")
        parsed = parse_qs(decoded, keep_blank_values=True)
        return {key: values[0] for key, values in parsed.items() if values}

    raise ValidationError(UNSUPPORTED_CONTENT_TYPE)


async def _call(func: Callable[..., T], *args: Any) -> T:
    """Run a blocking service call in a worker thread.

    Anything that is not already an :class:`AuthServiceError` is logged and
    reported to the client as a generic internal error.
    """

    try:
        return await anyio.to_thread.run_sync(func, *args)
    except AuthServiceError:
        raise
    except Exception as exc:
        logger.exception("Unhandled error in %s", getattr(func, "__name__", func))
        raise InternalError() from exc


def register_auth_routes(app: FastAPI, service: AuthService) -> None:
    """Expose the signup/login endpoints on the provided FastAPI application."""

    @app.get("/healthz")
    async def healthcheck() -> Dict[str, bool]:
        return {"ok": True}

    @app.post(
        "/api/signup",
        status_code=status.HTTP_201_CREATED,
        response_model=AuthResponse,
        responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    )
    async def signup(request: Request) -> JSONResponse:
        payload = SignupRequest.model_validate(await _parse_body(request))
        profile = await _call(
            service.signup,
            payload.full_name,
            payload.email,
            payload.password,
            payload.account_type,
        )
        return JSONResponse(
            status_code=status.HTTP_201_CREATED,
            content=AuthResponse.from_profile(profile).model_dump(),
        )

    @app.post(
        "/api/login",
        response_model=AuthResponse,
        responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
    )
    async def login(request: Request) -> JSONResponse:
        payload = LoginRequest.model_validate(await _parse_body(request))
        profile = await _call(service.login, payload.email, payload.password)
        return JSONResponse(
            status_code=status.HTTP_200_OK,
            content=AuthResponse.from_profile(profile).model_dump(),
        )


def register_cors(app: FastAPI, allowed_origin: str) -> None:
    """Answer preflight requests and stamp the allowed origin on every response."""

    @app.middleware("http")
    async def apply_cors(request: Request, call_next):
        if request.method == "OPTIONS":
            requested_headers = request.headers.get("access-control-request-headers") or "Content-Type"
            return Response(
                status_code=status.HTTP_204_NO_CONTENT,
                headers={
                    "Access-Control-Allow-Origin": allowed_origin,
                    "Access-Control-Allow-Methods": "POST, OPTIONS",
                    "Access-Control-Allow-Headers": requested_headers,
                    "Access-Control-Max-Age": _PREFLIGHT_MAX_AGE,
                },
            )

        response = await call_next(request)
        response.headers["Access-Control-Allow-Origin"] = allowed_origin
        return response


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AuthServiceError)
    async def handle_auth_error(_: Request, exc: AuthServiceError) -> JSONResponse:
        return _error_response(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(_: Request, exc: StarletteHTTPException) -> JSONResponse:
        # Unknown paths and known paths with the wrong method both read as 404.
        if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
            return _error_response(status.HTTP_404_NOT_FOUND, NOT_FOUND)
        return _error_response(exc.status_code, str(exc.detail))


def create_app(
    *,
    settings: Settings | None = None,
    database: Database | None = None,
    hasher: PasswordHasher | None = None,
) -> FastAPI:
    """Instantiate the FastAPI application for the auth service."""

    app_settings = settings or load_settings()
    db = database or Database(app_settings.database_path)
    db.initialize()

    auth_service = AuthService(db, hasher or PasswordHasher(app_settings.password_scheme))

    app = FastAPI(
        title="RentSwipe Auth API",
        version="0.1.0",
        description="Signup and login for RentSwipe tenants and landlords.",
    )

    app.state.settings = app_settings
    app.state.database = db
    app.state.auth_service = auth_service

    register_auth_routes(app, auth_service)
    register_error_handlers(app)
    register_cors(app, app_settings.allowed_origin)

    if app_settings.allowed_origin == "*":
        logger.warning("CORS allows any origin. Set RENTSWIPE_ALLOWED_ORIGIN for production deployments.")

    return app


__all__ = ["create_app", "register_auth_routes", "register_cors", "register_error_handlers"]
