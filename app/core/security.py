"""Secret hashing (bcrypt) and JWT issuance/verification for authentication."""

import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from typing import TYPE_CHECKING, Any

import bcrypt
import jwt

if TYPE_CHECKING:
    from app.core.config import Settings

# Bcrypt cost used when none is configured.
DEFAULT_BCRYPT_ROUNDS = 10

# Claims every token must carry to be accepted.
REQUIRED_CLAIMS = ["sub", "username", "iss", "aud", "exp"]


def _to_bcrypt_bytes(plaintext: str) -> bytes:
    # bcrypt only uses the first 72 bytes; newer releases raise instead of truncating.
    return plaintext.encode("utf-8")[:72]


@lru_cache
def dummy_digest(rounds: int) -> str:
    """A valid digest at the given cost that matches no real secret; computed once per cost."""
    secret = uuid.uuid4().hex.encode("utf-8")
    return bcrypt.hashpw(secret, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


class SecretHasher:
    """Salted one-way hashing for passwords and recovery answers."""

    def __init__(self, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> None:
        self.rounds = rounds

    def hash(self, plaintext: str) -> str:
        """Hash a secret for storage. A fresh salt is drawn on every call."""
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(_to_bcrypt_bytes(plaintext), salt).decode("utf-8")

    def verify(self, plaintext: str, digest: str) -> bool:
        """Check a secret against a stored digest. A malformed digest is a mismatch."""
        try:
            return bcrypt.checkpw(_to_bcrypt_bytes(plaintext), digest.encode("utf-8"))
        except (ValueError, TypeError, AttributeError):
            return False


@dataclass(frozen=True)
class TokenConfig:
    """Signing secret, claim values and lifetimes for issued tokens."""

    secret: str
    issuer: str
    audience: str
    access_lifetime: timedelta
    refresh_lifetime: timedelta
    algorithm: str = "HS256"

    @classmethod
    def from_settings(cls, settings: "Settings") -> "TokenConfig":
        return cls(
            secret=settings.JWT_SECRET.get_secret_value(),
            issuer=settings.JWT_ISSUER,
            audience=settings.JWT_AUDIENCE,
            access_lifetime=timedelta(minutes=settings.JWT_EXPIRE_MINUTES),
            refresh_lifetime=timedelta(minutes=settings.JWT_REFRESH_EXPIRE_MINUTES),
            algorithm=settings.JWT_ALGORITHM,
        )

    def __repr__(self) -> str:
        return (
            f"TokenConfig(issuer={self.issuer!r}, audience={self.audience!r}, "
            f"access_lifetime={self.access_lifetime!r}, "
            f"refresh_lifetime={self.refresh_lifetime!r}, algorithm={self.algorithm!r})"
        )


@dataclass(frozen=True)
class TokenClaims:
    """Verified claims extracted from a token."""

    sub: str
    username: str
    issuer: str
    audience: str
    expires_at: datetime
    issued_at: datetime | None = None
    token_id: str | None = None


class TokenIssuer:
    """
    Create and verify signed, expiring JWTs.

    The issuer has no notion of token kind: access and refresh tokens differ
    only by the lifetime passed to issue(). The clock is injectable so that
    expiry can be tested at exact instants.
    """

    def __init__(
        self,
        config: TokenConfig,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.config = config
        self._clock = clock or (lambda: datetime.now(UTC))

    def issue(self, subject_id: str | int, username: str, lifetime: timedelta) -> str:
        """Sign a token for the subject that expires `lifetime` from now."""
        now = self._clock()
        payload: dict[str, Any] = {
            "sub": str(subject_id),
            "username": username,
            "iss": self.config.issuer,
            "aud": self.config.audience,
            "iat": int(now.timestamp()),
            "exp": int((now + lifetime).timestamp()),
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(payload, self.config.secret, algorithm=self.config.algorithm)

    def issue_access(self, subject_id: str | int, username: str) -> str:
        return self.issue(subject_id, username, self.config.access_lifetime)

    def issue_refresh(self, subject_id: str | int, username: str) -> str:
        return self.issue(subject_id, username, self.config.refresh_lifetime)

    def verify(self, token: str) -> TokenClaims:
        """
        Validate signature, issuer, audience and expiry; return the claims.

        Raises a jwt.PyJWTError subclass describing the failed check
        (InvalidSignatureError, ExpiredSignatureError, InvalidIssuerError,
        InvalidAudienceError, DecodeError, MissingRequiredClaimError).
        """
        payload = jwt.decode(
            token,
            self.config.secret,
            algorithms=[self.config.algorithm],
            audience=self.config.audience,
            issuer=self.config.issuer,
            # Time claims are checked below against the injected clock.
            options={"require": REQUIRED_CLAIMS, "verify_exp": False, "verify_iat": False},
        )
        exp = payload["exp"]
        if not isinstance(exp, int):
            raise jwt.DecodeError("Expiration Time claim (exp) must be an integer.")
        if self._clock().timestamp() >= exp:
            raise jwt.ExpiredSignatureError("Signature has expired")
        username = payload["username"]
        if not isinstance(username, str) or not username:
            raise jwt.InvalidTokenError("Token username claim must be a non-empty string")
        iat = payload.get("iat")
        return TokenClaims(
            sub=str(payload["sub"]),
            username=username,
            issuer=payload["iss"],
            audience=self.config.audience,
            expires_at=datetime.fromtimestamp(exp, UTC),
            issued_at=datetime.fromtimestamp(iat, UTC) if isinstance(iat, int) else None,
            token_id=payload.get("jti"),
        )
