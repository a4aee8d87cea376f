"""Access token issuing and verification.

Tokens are HS256 JWTs carrying the user's email and a fixed expiry.
There is no refresh flow: an expired token is replaced by calling
PUT /user/{email} again.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from jose import JWTError, jwt

from drs_care.errors import InvalidTokenError


class TokenService:
    """Signs and verifies access tokens with a shared secret."""

    def __init__(self, secret: str, ttl_seconds: int = 3600, algorithm: str = "HS256"):
        if not secret:
            raise ValueError("Token secret must not be empty")
        self.secret = secret
        self.ttl = timedelta(seconds=ttl_seconds)
        self.algorithm = algorithm

    def issue(self, email: str) -> str:
        """
        Create a signed token for email.

        Args:
            email: Identity to embed in the token

        Returns:
            Encoded JWT valid for the configured TTL
        """
        now = datetime.now(timezone.utc)
        claims = {"email": email, "iat": now, "exp": now + self.ttl}
        return jwt.encode(claims, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> Dict[str, Any]:
        """
        Decode and check a token.

        Args:
            token: Encoded JWT

        Returns:
            Decoded claims (always contains "email")

        Raises:
            InvalidTokenError: If the signature, format or expiry check fails
        """
        try:
            claims = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except JWTError as e:
            raise InvalidTokenError(str(e)) from e

        if not claims.get("email"):
            raise InvalidTokenError("Token has no email claim")
        return claims
