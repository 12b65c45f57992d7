from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from money_tracker.core.errors import Unauthenticated
from money_tracker.core.security import Identity, InvalidToken, TokenService

# OAuth2 password bearer scheme - extracts token from Authorization header
# auto_error=False: a missing or non-Bearer header yields None so the
# rejection goes through our own error format
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/auth/login", auto_error=False)


def get_token_service(request: Request) -> TokenService:
    """The TokenService built by the app factory"""
    return request.app.state.token_service


async def get_current_identity(
    request: Request,
    token: str | None = Depends(oauth2_scheme),
    token_service: TokenService = Depends(get_token_service),
) -> Identity:
    """
    Resolve the caller's identity from the bearer token.

    Used as a dependency on every protected route. There are two outcomes:
    the identity is attached to request.state and returned, or the request is
    rejected with 401 before it reaches the handler. No database access; a
    valid signature is trusted until the token expires.
    """
    # "Bearer" with nothing after it comes through as an empty string
    if not token:
        raise Unauthenticated("No token provided")

    try:
        identity = token_service.verify(token)
    except InvalidToken:
        raise Unauthenticated("Invalid token")

    request.state.identity = identity
    return identity
