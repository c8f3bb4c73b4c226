"""Security utilities: password hashing and the identity token codec."""

import secrets
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol

from jose import JWTError, jwt
from passlib.context import CryptContext

from notenest.models.user import UserRole

# ── Password hashing (Argon2) ────────────────────────────────


class PasswordVerifier(Protocol):
    def hash(self, password: str) -> str: ...

    def verify(self, plain: str, hashed: str) -> bool: ...


class PasswordHasher:
    """Default password verifier backed by passlib."""

    def __init__(self, schemes: list[str] | None = None) -> None:
        self._context = CryptContext(schemes=schemes or ["argon2"], deprecated="auto")

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, plain: str, hashed: str) -> bool:
        return self._context.verify(plain, hashed)


def generate_temporary_password() -> str:
    """Random password handed out once when a user is invited."""
    return secrets.token_urlsafe(12)


# ── Identity tokens (JWT) ────────────────────────────────────


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Identity:
    """Resolved identity carried through a request. Never mutated, only reissued."""

    user_id: uuid.UUID
    tenant_id: uuid.UUID
    role: UserRole
    tenant_name: str
    issued_at: datetime
    expires_at: datetime

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class InvalidToken(Exception):
    """Base class for every token verification failure."""


class TokenMalformed(InvalidToken):
    pass


class TokenBadSignature(InvalidToken):
    pass


class TokenExpired(InvalidToken):
    pass


class TokenCodec:
    """Signs and verifies identity tokens with a process-wide secret.

    Rotating the secret invalidates every outstanding token. The clock is
    injectable so expiry can be checked against a fixed point in time.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        lifetime: timedelta = timedelta(hours=24),
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        if not secret:
            raise ValueError("Token secret must not be empty")
        self._secret = secret
        self._algorithm = algorithm
        self._lifetime = lifetime
        self._clock = clock

    @property
    def lifetime(self) -> timedelta:
        return self._lifetime

    def issue(
        self,
        user_id: uuid.UUID,
        tenant_id: uuid.UUID,
        role: UserRole,
        tenant_name: str,
    ) -> str:
        issued_at = self._clock().replace(microsecond=0)
        return self.mint(
            Identity(
                user_id=user_id,
                tenant_id=tenant_id,
                role=role,
                tenant_name=tenant_name,
                issued_at=issued_at,
                expires_at=issued_at + self._lifetime,
            )
        )

    def mint(self, identity: Identity) -> str:
        payload = {
            "sub": str(identity.user_id),
            "tid": str(identity.tenant_id),
            "role": identity.role.value,
            "tname": identity.tenant_name,
            "iat": int(identity.issued_at.timestamp()),
            "exp": int(identity.expires_at.timestamp()),
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> Identity:
        """Decode and verify a token. Raises an InvalidToken subclass on failure."""
        try:
            jwt.get_unverified_claims(token)
        except JWTError as exc:
            raise TokenMalformed(str(exc)) from exc

        try:
            # Expiry is checked below against the injected clock
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"verify_exp": False},
            )
        except JWTError as exc:
            raise TokenBadSignature(str(exc)) from exc

        identity = _identity_from_claims(claims)
        if self._clock() > identity.expires_at:
            raise TokenExpired(f"Token expired at {identity.expires_at.isoformat()}")
        return identity


def _identity_from_claims(claims: dict[str, Any]) -> Identity:
    try:
        return Identity(
            user_id=uuid.UUID(claims["sub"]),
            tenant_id=uuid.UUID(claims["tid"]),
            role=UserRole(claims["role"]),
            tenant_name=str(claims["tname"]),
            issued_at=datetime.fromtimestamp(int(claims["iat"]), tz=timezone.utc),
            expires_at=datetime.fromtimestamp(int(claims["exp"]), tz=timezone.utc),
        )
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise TokenMalformed(f"Malformed token claims: {exc}") from exc
