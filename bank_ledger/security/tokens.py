"""
JWT access tokens.

Tokens are HS256-signed and carry the username as subject plus
the user's role names. Expiry is checked against the injected
clock rather than the wall clock so expiry can be tested.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from bank_ledger.clock import Clock, utc_now
from bank_ledger.exceptions import InvalidTokenError


@dataclass(frozen=True)
class TokenClaims:
    subject: str
    roles: list[str]
    issued_at: datetime
    expires_at: datetime


def _to_epoch(moment: datetime) -> int:
    return int(moment.replace(tzinfo=timezone.utc).timestamp())


def _from_epoch(seconds: int) -> datetime:
    return datetime.fromtimestamp(seconds, tz=timezone.utc).replace(tzinfo=None)


class TokenIssuer:

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        ttl_minutes: int = 60,
        clock: Clock = utc_now,
    ):
        self.secret = secret
        self.algorithm = algorithm
        self.ttl = timedelta(minutes=ttl_minutes)
        self.clock = clock

    def issue(
        self,
        subject: str,
        roles: list[str],
        ttl: timedelta | None = None,
    ) -> str:
        issued_at = self.clock()
        expires_at = issued_at + (ttl if ttl is not None else self.ttl)
        claims = {
            "sub": subject,
            "roles": list(roles),
            "iat": _to_epoch(issued_at),
            "exp": _to_epoch(expires_at),
        }
        return jwt.encode(claims, self.secret, algorithm=self.algorithm)

    def validate(self, token: str) -> TokenClaims:
        """
        Verify signature and expiry and return the claims.

        Raises InvalidTokenError for anything that is not a live,
        correctly signed token with a subject.
        """
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"verify_exp": False},
            )
        except JWTError as e:
            raise InvalidTokenError(f"Invalid token: {e}") from e

        subject = payload.get("sub")
        expires = payload.get("exp")
        if not subject or not isinstance(expires, int):
            raise InvalidTokenError("Token is missing required claims")

        if _to_epoch(self.clock()) >= expires:
            raise InvalidTokenError("Token has expired")

        return TokenClaims(
            subject=subject,
            roles=list(payload.get("roles", [])),
            issued_at=_from_epoch(payload.get("iat", expires)),
            expires_at=_from_epoch(expires),
        )
