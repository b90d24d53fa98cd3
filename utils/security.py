"""
security helpers:
- AuthSettings: secrets, lifetimes and hashing cost, built once from app config
- CredentialHasher: Argon2 password hashing via argon2-cffi
- TokenService: access/refresh JWT creation and verification via PyJWT
- JTI generation for token identifiers
"""
from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Mapping

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import HashingError, InvalidHashError, VerificationError, VerifyMismatchError

from services.exceptions import InternalError


@dataclass(frozen=True)
class AuthSettings:
    access_secret: str
    refresh_secret: str
    algorithm: str = "HS256"
    issuer: str = "channel-accounts-api"
    access_expires: timedelta = timedelta(minutes=15)
    refresh_expires: timedelta = timedelta(days=10)
    argon2_time_cost: int = 3
    argon2_memory_cost: int = 65536
    argon2_parallelism: int = 4

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "AuthSettings":
        """Build settings from a Flask config (or any mapping with the same keys)."""
        if config["ACCESS_TOKEN_SECRET"] == config["REFRESH_TOKEN_SECRET"]:
            raise ValueError("ACCESS_TOKEN_SECRET and REFRESH_TOKEN_SECRET must differ")
        return cls(
            access_secret=config["ACCESS_TOKEN_SECRET"],
            refresh_secret=config["REFRESH_TOKEN_SECRET"],
            algorithm=config.get("JWT_ALGORITHM", "HS256"),
            issuer=config.get("JWT_ISSUER", "channel-accounts-api"),
            access_expires=config["ACCESS_TOKEN_EXPIRES"],
            refresh_expires=config["REFRESH_TOKEN_EXPIRES"],
            argon2_time_cost=config.get("ARGON2_TIME_COST", 3),
            argon2_memory_cost=config.get("ARGON2_MEMORY_COST", 65536),
            argon2_parallelism=config.get("ARGON2_PARALLELISM", 4),
        )


class CredentialHasher:
    """One-way password hashing. Each hash carries its own salt and cost parameters."""

    def __init__(self, settings: AuthSettings):
        self._ph = PasswordHasher(
            time_cost=settings.argon2_time_cost,
            memory_cost=settings.argon2_memory_cost,
            parallelism=settings.argon2_parallelism,
        )

    def hash(self, password: str) -> str:
        """Hash a plaintext password using Argon2
        """
        try:
            return self._ph.hash(password)
        except HashingError as exc:
            raise InternalError("Could not hash password") from exc

    def verify(self, password: str, password_hash: str) -> bool:
        """Verify a plaintext password against a stored Argon2 hash
        """
        try:
            return self._ph.verify(password_hash, password)
        except VerifyMismatchError:
            return False
        except (InvalidHashError, VerificationError) as exc:
            raise InternalError("Stored password hash is unusable") from exc


class TokenKind(str, enum.Enum):
    ACCESS = "access"
    REFRESH = "refresh"


class TokenFailure(str, enum.Enum):
    MALFORMED = "malformed"
    BAD_SIGNATURE = "bad_signature"
    EXPIRED = "expired"
    WRONG_KEY = "wrong_key"


class InvalidTokenError(Exception):
    """Raised by TokenService.verify; `reason` tells which check failed."""

    def __init__(self, reason: TokenFailure, message: str):
        super().__init__(message)
        self.reason = reason


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID).
    """
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """
    Signs and verifies the two token kinds. Access and refresh tokens use
    separate secrets so a leaked token of one kind is useless as the other.
    """

    REQUIRED_CLAIMS = ["exp", "iat", "jti", "type", "id"]

    def __init__(self, settings: AuthSettings, clock: Callable[[], datetime] = _utcnow):
        self.settings = settings
        self.clock = clock

    def _secret(self, kind: TokenKind) -> str:
        if kind is TokenKind.ACCESS:
            return self.settings.access_secret
        return self.settings.refresh_secret

    def _lifetime(self, kind: TokenKind) -> timedelta:
        if kind is TokenKind.ACCESS:
            return self.settings.access_expires
        return self.settings.refresh_expires

    def _sign(self, claims: Dict[str, Any], kind: TokenKind) -> str:
        now = self.clock()
        payload = {
            **claims,
            "iss": self.settings.issuer,
            "iat": int(now.timestamp()),
            "exp": int((now + self._lifetime(kind)).timestamp()),
            "type": kind.value,
            "jti": generate_jti(),
        }
        return jwt.encode(payload, self._secret(kind), algorithm=self.settings.algorithm)

    def issue_access(self, user) -> str:
        return self._sign(
            {
                "id": user.id,
                "username": user.username,
                "email": user.email,
                "fullName": user.full_name,
            },
            TokenKind.ACCESS,
        )

    def issue_refresh(self, user) -> str:
        return self._sign({"id": user.id}, TokenKind.REFRESH)

    def verify(self, token: str, kind: TokenKind) -> Dict[str, Any]:
        """
        Decode and validate a token of the given kind. Raises InvalidTokenError
        tagged with MALFORMED, BAD_SIGNATURE, EXPIRED or WRONG_KEY.
        """
        algorithms = [self.settings.algorithm]
        try:
            decoded = jwt.decode(
                token,
                self._secret(kind),
                algorithms=algorithms,
                issuer=self.settings.issuer,
                options={"require": self.REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError:
            raise InvalidTokenError(TokenFailure.EXPIRED, "Token expired")
        except jwt.InvalidSignatureError:
            other = TokenKind.REFRESH if kind is TokenKind.ACCESS else TokenKind.ACCESS
            if self._signed_with(token, other):
                raise InvalidTokenError(TokenFailure.WRONG_KEY, f"Expected a {kind.value} token")
            raise InvalidTokenError(TokenFailure.BAD_SIGNATURE, "Signature verification failed")
        except jwt.InvalidTokenError as exc:
            raise InvalidTokenError(TokenFailure.MALFORMED, f"Invalid token: {exc}")

        if decoded.get("type") != kind.value:
            raise InvalidTokenError(TokenFailure.WRONG_KEY, f"Expected a {kind.value} token")
        return decoded

    def _signed_with(self, token: str, kind: TokenKind) -> bool:
        try:
            jwt.decode(
                token,
                self._secret(kind),
                algorithms=[self.settings.algorithm],
                options={"verify_exp": False, "verify_iat": False},
            )
        except jwt.InvalidTokenError:
            return False
        return True
