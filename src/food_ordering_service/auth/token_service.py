"""Signed bearer tokens for admins and customers.

Tokens are HS256 JWTs carrying the account id, email and role. Admin tokens
are short-lived; customer tokens last long enough that the storefront keeps
customers signed in between visits.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from food_ordering_service.errors import AuthError

ADMIN_ROLE = "admin"
CUSTOMER_ROLE = "customer"


@dataclass(frozen=True)
class TokenClaims:
    """Verified identity carried by a bearer token.

    Attributes:
        account_id: Admin or customer identifier
        email: Account email
        role: "admin" or "customer"
    """

    account_id: str
    email: str
    role: str


class TokenService:
    """Issues and verifies signed bearer tokens."""

    algorithm = "HS256"

    def __init__(
        self,
        secret: str,
        admin_ttl: timedelta = timedelta(days=1),
        customer_ttl: timedelta = timedelta(days=30),
    ) -> None:
        """Initialize the token service.

        Args:
            secret: Signing key
            admin_ttl: Lifetime of admin tokens
            customer_ttl: Lifetime of customer tokens

        Raises:
            ValueError: If the signing key is empty
        """
        if not secret:
            raise ValueError("A token signing secret must be provided")

        self.secret = secret
        self.admin_ttl = admin_ttl
        self.customer_ttl = customer_ttl

    def issue_admin_token(self, admin_id: str, email: str) -> str:
        return self._issue(admin_id, email, ADMIN_ROLE, self.admin_ttl)

    def issue_customer_token(self, customer_id: str, email: str) -> str:
        return self._issue(customer_id, email, CUSTOMER_ROLE, self.customer_ttl)

    def verify(self, token: str) -> TokenClaims:
        """Verify a token's signature and expiry.

        Args:
            token: Encoded JWT

        Returns:
            TokenClaims for the token's account

        Raises:
            AuthError: If the token is expired, tampered with or malformed
        """
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "id"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise AuthError("Unauthorized: Token expired") from e
        except jwt.InvalidTokenError as e:
            raise AuthError("Unauthorized: Invalid token") from e

        return TokenClaims(
            account_id=str(payload["id"]),
            email=str(payload.get("email", "")),
            role=str(payload.get("role", ADMIN_ROLE)),
        )

    def _issue(self, account_id: str, email: str, role: str, ttl: timedelta) -> str:
        now = datetime.now(UTC)
        payload: dict[str, Any] = {
            "id": account_id,
            "email": email,
            "role": role,
            "iat": now,
            "exp": now + ttl,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)
