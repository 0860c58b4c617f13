"""
Session token creation and verification.

Tokens are HS256 JWTs (PyJWT) carrying ``email`` and ``exp`` (unix
seconds).  The server keeps no session state; expiry is always computed at
issuance as *now + lifetime*.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict

import jwt

from auth.errors import SigningError, TokenExpiredError, TokenInvalidError

ALGORITHM = "HS256"
DEFAULT_LIFETIME = timedelta(hours=24)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SessionClaims:
    email: str
    expires_at: datetime

    def to_payload(self) -> Dict[str, Any]:
        return {"email": self.email, "exp": int(self.expires_at.timestamp())}

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "SessionClaims":
        return cls(
            email=payload["email"],
            expires_at=datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc),
        )


def encode_claims(claims: SessionClaims, signing_key: bytes, algorithm: str = ALGORITHM) -> str:
    """Sign *claims*; identical claims and key always give the same token."""
    try:
        return jwt.encode(claims.to_payload(), signing_key, algorithm=algorithm)
    except (jwt.PyJWTError, TypeError, ValueError) as exc:
        raise SigningError("could not sign session token") from exc


def decode_token(
    token: str,
    signing_key: bytes,
    now: datetime,
    algorithm: str = ALGORITHM,
) -> SessionClaims:
    """
    Verify the signature of *token* and return its claims.

    Expiry is checked against *now* rather than the wall clock so callers
    control time.
    """
    try:
        payload = jwt.decode(
            token,
            signing_key,
            algorithms=[algorithm],
            options={"verify_exp": False, "require": ["email", "exp"]},
        )
        claims = SessionClaims.from_payload(payload)
    except (jwt.PyJWTError, KeyError, TypeError, ValueError) as exc:
        raise TokenInvalidError("invalid token") from exc
    if claims.expires_at <= now:
        raise TokenExpiredError("token expired")
    return claims


class TokenIssuer:
    def __init__(
        self,
        signing_key: bytes,
        *,
        lifetime: timedelta = DEFAULT_LIFETIME,
        algorithm: str = ALGORITHM,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._signing_key = signing_key
        self._algorithm = algorithm
        self._clock = clock
        self.lifetime = lifetime

    def claims_for(self, email: str) -> SessionClaims:
        now = self._clock().replace(microsecond=0)
        return SessionClaims(email=email, expires_at=now + self.lifetime)

    def issue(self, email: str) -> str:
        return encode_claims(self.claims_for(email), self._signing_key, self._algorithm)

    def verify(self, token: str) -> SessionClaims:
        return decode_token(token, self._signing_key, self._clock(), self._algorithm)
