"""
Authentication middleware for resolving the calling principal.

This middleware:
1. Extracts a bearer token from the Authorization header
2. Verifies signature and expiry
3. Rejects tokens on the shared revocation list
4. Stores the Principal and raw token in the request scope

Requests without a credential pass through untouched; routes that need a
principal declare it with ``api.dependencies.require_principal``.
"""

import logging
from typing import Callable, Optional

import jwt
from fastapi import Request, status
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError

from core.revocation import TokenRevocationList, token_revocations
from core.security import Principal, decode_access_token, principal_from_claims

logger = logging.getLogger(__name__)


class AuthenticationError(Exception):
    """Base exception for authentication errors."""
    pass


class TokenInvalidError(AuthenticationError):
    """Raised when the token is malformed, badly signed or expired."""
    pass


class TokenRevokedError(AuthenticationError):
    """Raised when the token was revoked by logout."""
    pass


class AuthenticationMiddleware:
    """
    ASGI middleware that turns a bearer token into a Principal.

    Scope keys set on success: ``principal``, ``token``, ``token_claims``.
    """

    def __init__(
        self,
        app: Callable,
        jwt_secret: str,
        jwt_algorithm: str = "HS256",
        revocation_list: Optional[TokenRevocationList] = None,
    ):
        """
        Initialize authentication middleware.

        Args:
            app: ASGI application
            jwt_secret: Secret key for JWT verification
            jwt_algorithm: JWT signing algorithm
            revocation_list: Shared revocation list (defaults to the global one)
        """
        self.app = app
        self.jwt_secret = jwt_secret
        self.jwt_algorithm = jwt_algorithm
        self.revocation_list = revocation_list or token_revocations

    async def __call__(self, scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        token = self._extract_token(request)
        if not token:
            await self.app(scope, receive, send)
            return

        try:
            principal, claims = await self._authenticate(token)
        except TokenRevokedError:
            await self._send_error_response(
                scope, receive, send,
                status_code=status.HTTP_403_FORBIDDEN,
                message="Session invalid, please login again",
            )
            return
        except TokenInvalidError as e:
            logger.warning(f"Invalid token: {e}")
            await self._send_error_response(
                scope, receive, send,
                status_code=status.HTTP_401_UNAUTHORIZED,
                message="Invalid or expired session",
            )
            return
        except RedisError:
            logger.error("Revocation list unavailable", exc_info=True)
            await self._send_error_response(
                scope, receive, send,
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                message="Service temporarily unavailable, please retry.",
            )
            return

        scope["principal"] = principal
        scope["token"] = token
        scope["token_claims"] = claims
        await self.app(scope, receive, send)

    async def _authenticate(self, token: str) -> tuple[Principal, dict]:
        try:
            claims = decode_access_token(token, self.jwt_secret, self.jwt_algorithm)
            principal = principal_from_claims(claims)
        except jwt.ExpiredSignatureError:
            raise TokenInvalidError("Token has expired")
        except jwt.InvalidTokenError as e:
            raise TokenInvalidError(str(e))

        if await self.revocation_list.is_revoked(token):
            raise TokenRevokedError()

        return principal, claims

    def _extract_token(self, request: Request) -> Optional[str]:
        """Return the bearer token from the Authorization header, if any."""
        auth_header = request.headers.get("Authorization")

        if auth_header and auth_header.startswith("Bearer "):
            return auth_header[7:].strip() or None

        return None

    async def _send_error_response(
        self,
        scope: dict,
        receive: Callable,
        send: Callable,
        status_code: int,
        message: str,
    ) -> None:
        response = JSONResponse(status_code=status_code, content={"error": message})
        await response(scope, receive, send)


def get_current_principal(request: Request) -> Optional[Principal]:
    """Principal resolved by the middleware, or None for anonymous requests."""
    return request.scope.get("principal")
