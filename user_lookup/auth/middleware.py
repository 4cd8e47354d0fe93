"""Session middleware resolving the calling user from a signed cookie."""

import json
import logging
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from itsdangerous import BadSignature, SignatureExpired, TimestampSigner
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from ..config import Settings, get_settings
from .models import SessionData

logger = logging.getLogger(__name__)


class SessionMiddleware(BaseHTTPMiddleware):
    """Middleware to handle session cookie validation.

    This middleware:
    1. Checks for session cookie on requests
    2. Validates the cookie signature and age
    3. Attaches session data to request state

    Requests without a valid cookie continue anonymously.
    """

    def __init__(self, app: ASGIApp, settings: Settings | None = None) -> None:
        super().__init__(app)
        self.settings = settings or get_settings()
        self.signer = TimestampSigner(self.settings.session_secret_key)

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """Process request and validate session."""

        # Skip auth for public endpoints
        if self._is_public_path(request.url.path):
            return await call_next(request)

        session_cookie = request.cookies.get(self.settings.session_cookie_name)

        if session_cookie:
            try:
                session_data = self._validate_session_cookie(session_cookie)

                request.state.session = session_data
                request.state.authenticated = True

                logger.debug(
                    "session.validated",
                    extra={"user_id": str(session_data.user_id), "path": request.url.path},
                )

            except (SignatureExpired, BadSignature) as e:
                logger.warning(
                    "session.invalid_cookie",
                    extra={"error": str(e), "path": request.url.path},
                )
                request.state.authenticated = False
            except (ValueError, TypeError) as e:
                logger.error(
                    "session.validation_error",
                    extra={"error": str(e), "path": request.url.path},
                )
                request.state.authenticated = False
        else:
            request.state.authenticated = False

        return await call_next(request)

    def _validate_session_cookie(self, cookie_value: str) -> SessionData:
        """Validate and extract session data from session cookie.

        Raises:
            SignatureExpired: If the cookie has expired.
            BadSignature: If the cookie signature is invalid.
        """
        unsigned_value = self.signer.unsign(
            cookie_value,
            max_age=self.settings.session_cookie_max_age,
        )
        session_dict = json.loads(unsigned_value.decode("utf-8"))
        return SessionData(**session_dict)

    def _is_public_path(self, path: str) -> bool:
        """Check if the path never needs a caller identity."""
        public_paths = ["/healthz", "/readyz", "/metrics", "/docs", "/openapi.json"]
        return any(path.startswith(p) for p in public_paths)


def get_current_session(request: Request) -> SessionData | None:
    """Get the current session from request state, None for anonymous callers."""
    return getattr(request.state, "session", None)
