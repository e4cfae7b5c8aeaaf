"""API middleware for the storefront.

Provides:
- Request ID correlation
- Session token parsing and the admin area guard
- Error handling with operator notification
"""

import time
import traceback
from typing import Callable
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from storefront.application.notifications import Notifier
from storefront.domain.exceptions import AuthenticationError
from storefront.domain.state_machines import UserRole
from storefront.infrastructure.config import settings
from storefront.infrastructure.mailer import get_mailer
from storefront.infrastructure.security import decode_session_token

logger = structlog.get_logger()


# ============================================================================
# Request ID Middleware
# ============================================================================


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Middleware to add request ID for correlation.

    Generates or extracts a request ID and adds it to:
    - Request state for access in handlers
    - Response headers for client correlation
    - Log context for tracing
    """

    HEADER_NAME = "X-Request-ID"

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request with correlation ID.

        Args:
            request: Incoming request.
            call_next: Next middleware/handler.

        Returns:
            Response with request ID header.
        """
        request_id = request.headers.get(self.HEADER_NAME) or str(uuid4())
        request.state.request_id = request_id
        structlog.contextvars.bind_contextvars(request_id=request_id)

        start_time = time.perf_counter()
        response = None
        try:
            response = await call_next(request)
        finally:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.info(
                "Request completed",
                method=request.method,
                path=request.url.path,
                status_code=getattr(response, "status_code", 500),
                duration_ms=round(duration_ms, 2),
            )
            structlog.contextvars.unbind_contextvars("request_id")

        response.headers[self.HEADER_NAME] = request_id
        return response


# ============================================================================
# Session Middleware
# ============================================================================


ADMIN_PREFIX = "/admin"


def _unauthorized(message: str, request_id: str | None) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={
            "error_code": "UNAUTHORIZED",
            "message": message,
            "details": [],
            "request_id": request_id,
        },
        headers={"WWW-Authenticate": "Bearer"},
    )


def extract_token(request: Request) -> str | None:
    """Get the session token from the Authorization header or the cookie.

    The header wins when both are present.
    """
    auth_header = request.headers.get("Authorization")
    if auth_header:
        parts = auth_header.split(" ", 1)
        if len(parts) == 2 and parts[0].lower() == "bearer" and parts[1].strip():
            return parts[1].strip()
    return request.cookies.get(settings.session_cookie_name) or None


class SessionMiddleware(BaseHTTPMiddleware):
    """Middleware that resolves the caller's session.

    Stores the verified claims (or None) on ``request.state.session_claims``
    for the route dependencies. Paths under ``/admin`` require a session
    carrying the ADMIN role.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Parse the session token and guard the admin area.

        Args:
            request: Incoming request.
            call_next: Next middleware/handler.

        Returns:
            Response, or a 401/403 error for the admin area.
        """
        request.state.session_claims = None
        request.state.session_error = None

        token = extract_token(request)
        if token:
            try:
                request.state.session_claims = decode_session_token(token)
            except AuthenticationError as e:
                request.state.session_error = e.message
                logger.info("Rejected session token", path=request.url.path, reason=e.message)

        path = request.url.path.rstrip("/")
        if path == ADMIN_PREFIX or path.startswith(ADMIN_PREFIX + "/"):
            request_id = getattr(request.state, "request_id", None)
            claims = request.state.session_claims
            if claims is None:
                logger.warning("Unauthenticated admin request", path=path, method=request.method)
                return _unauthorized(request.state.session_error or "Unauthorized", request_id)
            if claims.role != UserRole.ADMIN.value:
                logger.warning("Non-admin admin request", path=path, user_id=claims.user_id)
                return JSONResponse(
                    status_code=status.HTTP_403_FORBIDDEN,
                    content={
                        "error_code": "FORBIDDEN",
                        "message": "Forbidden",
                        "details": [],
                        "request_id": request_id,
                    },
                )

        return await call_next(request)


# ============================================================================
# Error Handling Middleware
# ============================================================================


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Middleware for consistent error handling.

    Catches unhandled exceptions, reports them to the operator address and
    returns a standardized 500 with the shop's contact details.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Handle errors uniformly.

        Args:
            request: Incoming request.
            call_next: Next middleware/handler.

        Returns:
            Response or error response.
        """
        try:
            return await call_next(request)
        except Exception as e:
            request_id = getattr(request.state, "request_id", None)

            logger.exception(
                "Unhandled exception",
                path=request.url.path,
                method=request.method,
                error=str(e),
            )
            await self._report(request, e)

            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={
                    "error_code": "INTERNAL_ERROR",
                    "message": "Something went wrong on our side. Please contact support.",
                    "details": {
                        "contact_email": settings.contact_email,
                        "contact_phone": settings.contact_phone,
                    },
                    "request_id": request_id,
                },
            )

    @staticmethod
    async def _report(request: Request, error: Exception) -> None:
        # Dependency overrides apply here too
        mailer_factory = request.app.dependency_overrides.get(get_mailer, get_mailer)
        error_text = "".join(traceback.format_exception(error))
        try:
            await Notifier(mailer_factory()).server_error(request.method, str(request.url), error_text)
        except Exception as report_error:
            logger.error("Failed to report server error", error=str(report_error))


# ============================================================================
# Middleware Setup
# ============================================================================


def setup_middleware(app: FastAPI) -> None:
    """Configure all middleware for the application.

    Middleware is added in reverse order (last added = first executed).

    Args:
        app: FastAPI application instance.
    """
    # Error handling (innermost of the three, sees the request ID)
    app.add_middleware(ErrorHandlerMiddleware)

    # Session parsing and admin guard
    app.add_middleware(SessionMiddleware)

    # Request ID correlation (outermost, tags every log line)
    app.add_middleware(RequestIdMiddleware)
