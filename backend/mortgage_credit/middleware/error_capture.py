"""FastAPI middleware that records failed requests in the error_logs table.

5xx responses and unhandled exceptions are stored as ERROR, other 4xx
responses (except auth noise) as WARNING. Request bodies are never read:
credit requests carry SSNs and dates of birth.
"""

from __future__ import annotations

import logging
import time
from typing import Optional

from fastapi import HTTPException, Request, Response
from jose import JWTError, jwt as jose_jwt
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import JSONResponse

from mortgage_credit.config import settings
from mortgage_credit.models.error_log import ErrorSeverity
from mortgage_credit.services.error_logger import log_error_standalone

logger = logging.getLogger("mortgage_credit.middleware")


def _user_id_from_request(request: Request) -> Optional[int]:
    auth_header = request.headers.get("authorization", "")
    if not auth_header.startswith("Bearer "):
        return None
    try:
        payload = jose_jwt.decode(auth_header[7:], settings.secret_key, algorithms=["HS256"])
        return int(payload.get("sub", 0)) or None
    except (JWTError, ValueError, TypeError):
        return None


class ErrorCaptureMiddleware(BaseHTTPMiddleware):
    """Catches unhandled exceptions, returns 500, and persists the error."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start = time.time()
        user_id = _user_id_from_request(request)
        ip_address = request.client.host if request.client else None

        try:
            response = await call_next(request)
        except Exception as exc:
            elapsed_ms = round((time.time() - start) * 1000, 2)
            if isinstance(exc, HTTPException) and exc.status_code < 500:
                raise

            severity = ErrorSeverity.CRITICAL if "database" in str(exc).lower() else ErrorSeverity.ERROR
            await log_error_standalone(
                exc,
                severity=severity,
                module="middleware.error_capture",
                request_method=request.method,
                request_path=str(request.url.path),
                status_code=500,
                response_time_ms=elapsed_ms,
                user_id=user_id,
                ip_address=ip_address,
            )
            logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
            return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})

        elapsed_ms = round((time.time() - start) * 1000, 2)
        if response.status_code >= 500:
            severity = ErrorSeverity.ERROR
        elif response.status_code >= 400 and response.status_code not in (401, 403):
            severity = ErrorSeverity.WARNING
        else:
            return response

        await log_error_standalone(
            Exception(f"HTTP {response.status_code} on {request.method} {request.url.path}"),
            severity=severity,
            module="middleware.error_capture",
            function_name="dispatch",
            request_method=request.method,
            request_path=str(request.url.path),
            status_code=response.status_code,
            response_time_ms=elapsed_ms,
            user_id=user_id,
            ip_address=ip_address,
        )
        return response
