"""Application errors and the exception handlers that render them.

Every error leaves the service as the same JSON envelope:
``{"error": str, "code"?: str, "details"?: str, "request_id": str}``.
"""

from typing import Any

from asgi_correlation_id import correlation_id
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.app.core.cors import build_cors_headers
from src.app.core.datastore import RpcError, RpcErrorKind, classify_rpc_error
from src.app.core.logging import get_logger

logger = get_logger(__name__)

UNKNOWN_ERROR_MESSAGE = "Onbekende fout"


class AppError(Exception):
    """Base class for errors with a defined HTTP rendering."""

    status_code: int = 500
    code: str = "internal_error"
    default_message: str = UNKNOWN_ERROR_MESSAGE

    def __init__(
        self,
        message: str | None = None,
        *,
        code: str | None = None,
        details: str | None = None,
        status_code: int | None = None,
    ):
        self.message = message or self.default_message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.details = details
        super().__init__(self.message)

    @classmethod
    def from_rpc(cls, error: RpcError, *, pass_status: bool = False) -> "AppError":
        """Wrap a data store error, keeping its message.

        With ``pass_status`` the upstream HTTP status and code are surfaced as-is.
        """
        status_code = None
        code = None
        if pass_status:
            if error.status is not None and error.status >= 400:
                status_code = error.status
            code = error.code
        return cls(error.message, code=code, details=error.details, status_code=status_code)


class Unauthenticated(AppError):
    status_code = 401
    code = "unauthenticated"
    default_message = "Missing Authorization header"


class Forbidden(AppError):
    status_code = 403
    code = "forbidden"
    default_message = "Geen toegang tot deze organisatie"


class InvalidInput(AppError):
    status_code = 400
    code = "invalid_input"
    default_message = "Ongeldige invoer"


class InvalidJsonBody(InvalidInput):
    code = "invalid_json"
    default_message = "Invalid JSON body"


class InvalidRole(InvalidInput):
    code = "invalid_role"
    default_message = "p_role must be ADMIN, TEAM of CUSTOMER"


class InvalidOrgId(InvalidInput):
    code = "invalid_org_id"
    default_message = "p_org must be a uuid"


class MissingToken(InvalidInput):
    code = "missing_token"
    default_message = "Missing token"


class NotFound(AppError):
    status_code = 404
    code = "not_found"
    default_message = "Niet gevonden"


class InviteGone(AppError):
    """Token is invalid, expired, revoked or already consumed."""

    status_code = 410
    code = "invite_gone"
    default_message = "Uitnodiging is ongeldig, verlopen of al gebruikt"


class UpstreamError(AppError):
    """An external procedure returned a domain error; its message is passed through."""

    status_code = 400
    code = "upstream_error"
    default_message = "RPC error"


class InviteCreationFailed(UpstreamError):
    code = "invite_creation_failed"
    default_message = "Kon invite niet aanmaken"


class IntegrityError(AppError):
    """An external call succeeded but returned a shape that cannot be trusted."""

    status_code = 500
    code = "integrity_error"
    default_message = "Invalid RPC response"


class ConfigurationError(AppError):
    status_code = 500
    code = "configuration_error"
    default_message = "Missing SUPABASE_URL or SUPABASE_ANON_KEY env vars"


def app_error_for_rpc(
    error: RpcError,
    fallback: type[AppError] = UpstreamError,
    *,
    redeeming: bool = False,
) -> AppError:
    """Classify a procedure failure; unclassified errors become ``fallback``.

    Only redemption maps to ``InviteGone``; elsewhere a gone-looking error is
    an ordinary ``fallback``.
    """
    kind = classify_rpc_error(error)
    if kind is RpcErrorKind.UNAUTHENTICATED:
        return Unauthenticated.from_rpc(error)
    if kind is RpcErrorKind.FORBIDDEN:
        return Forbidden.from_rpc(error)
    if redeeming and kind is RpcErrorKind.GONE:
        return InviteGone.from_rpc(error)
    return fallback.from_rpc(error)


def error_payload(
    message: str,
    code: str | None = None,
    details: str | None = None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {"error": message}
    if code:
        payload["code"] = code
    if details:
        payload["details"] = details
    payload["request_id"] = correlation_id.get()
    return payload


def _error_response(
    request: Request,
    status_code: int,
    message: str,
    code: str | None = None,
    details: str | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error_payload(message, code, details),
        headers=build_cors_headers(request.headers.get("origin")),
    )


def validation_error_to_app_error(exc: RequestValidationError) -> AppError:
    """Map request validation failures to the 400 taxonomy."""
    errors = exc.errors()
    types = {error.get("type") for error in errors}

    if "json_invalid" in types:
        return InvalidJsonBody()
    if "invalid_org_id" in types:
        return InvalidOrgId()
    if "invalid_role" in types:
        return InvalidRole()

    fields = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query")]
        fields.append(f"{'.'.join(loc) or 'body'}: {error.get('msg', 'invalid')}")

    first = errors[0] if errors else {}
    first_loc = [str(p) for p in first.get("loc", ()) if p not in ("body", "query")]
    if first.get("type") == "missing" and first_loc:
        message = f"Missing {first_loc[-1]}"
    else:
        message = InvalidInput.default_message
    return InvalidInput(message, details="; ".join(fields) or None)


def setup_exception_handlers(app: FastAPI) -> None:
    """Configure exception handlers that render the JSON error envelope."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(
                "Request failed",
                error=exc.message,
                code=exc.code,
                path=request.url.path,
            )
        else:
            logger.info(
                "Request rejected",
                status=exc.status_code,
                code=exc.code,
                path=request.url.path,
            )
        return _error_response(request, exc.status_code, exc.message, exc.code, exc.details)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        error = validation_error_to_app_error(exc)
        logger.info("Request validation failed", code=error.code, path=request.url.path)
        return _error_response(request, error.status_code, error.message, error.code, error.details)

    @app.exception_handler(StarletteHTTPException)
    async def starlette_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        message = exc.detail if isinstance(exc.detail, str) else UNKNOWN_ERROR_MESSAGE
        response = _error_response(request, exc.status_code, message)
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "Unhandled exception",
            exc_info=exc,
            path=request.url.path,
        )
        return _error_response(request, 500, "Unexpected error")
