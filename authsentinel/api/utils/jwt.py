import logging
from datetime import UTC, datetime, timedelta
from typing import Optional

from jose import JWTError, jwt

from authsentinel.domain.values import TokenClaims

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


class TokenCodec:
    """
    Signs and verifies stateless tokens.

    Args:
        secret: HS256 signing secret
        max_age: Token lifetime (matches the session lifetime)
    """

    def __init__(self, secret: str, max_age: timedelta = timedelta(days=30)):
        self.secret = secret
        self.max_age = max_age

    def encode(self, claims: TokenClaims, issued_at: Optional[datetime] = None) -> str:
        """
        Encode claims as a JWT

        Args:
            claims: Token claims record
            issued_at: Original issue time, kept across refreshes

        Returns:
            JWT token string (HS256)
        """
        now = datetime.now(UTC)
        issued_at = issued_at or now
        payload = claims.to_payload()
        payload["sub"] = claims.principal_id
        payload["iat"] = issued_at
        payload["exp"] = issued_at + self.max_age
        return jwt.encode(payload, self.secret, algorithm=ALGORITHM)

    def decode(self, token: str) -> Optional[TokenClaims]:
        """
        Verify and decode a JWT

        Args:
            token: JWT token string

        Returns:
            TokenClaims or None if the signature, expiry or shape is invalid
        """
        payload = self.decode_payload(token)
        if payload is None:
            return None
        try:
            return TokenClaims.from_payload(payload)
        except (KeyError, TypeError, ValueError):
            logger.warning("Token payload is missing required claims")
            return None

    def decode_payload(self, token: str) -> Optional[dict]:
        try:
            return jwt.decode(token, self.secret, algorithms=[ALGORITHM])
        except JWTError:
            return None

    @staticmethod
    def issued_at(payload: dict) -> Optional[datetime]:
        iat = payload.get("iat")
        if iat is None:
            return None
        return datetime.fromtimestamp(int(iat), UTC)
