"""FastAPI dependencies for bearer-token authentication.

Protected routes depend on ``get_claims_from_header``; public routes simply
do not declare it, so the handler of a protected route never runs without a
verified token.
"""

from typing import Annotated

from fastapi import Header

from food_ordering_service.auth.token_service import TokenClaims, TokenService
from food_ordering_service.errors import AuthError


def get_claims_from_header(
    authorization: Annotated[str | None, Header()] = None,
    token_service: TokenService | None = None,
) -> TokenClaims:
    """Extract and verify the bearer token from the Authorization header.

    Args:
        authorization: Raw Authorization header value (injected by FastAPI)
        token_service: TokenService used to verify the token

    Returns:
        TokenClaims: The verified identity

    Raises:
        AuthError: 401 if the header is missing, not a bearer token, or invalid
    """
    if not authorization:
        raise AuthError("Unauthorized: Missing bearer token")

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthError("Unauthorized: Malformed authorization header")

    if token_service is None:
        raise AuthError("Unauthorized: Token verification is not configured")

    return token_service.verify(token.strip())
