"""
Bearer token issuance and verification.

Tokens are HS256 JWTs carrying ``sub`` (user id), ``email``, ``role``,
``iat`` and ``exp``. Verification is stateless: it never reads the user
table, so a role change only takes effect once the old token expires.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError, jwt
from jose.utils import base64url_decode, base64url_encode

from app.config import settings
from app.errors import AuthenticationError
from app.models.enums import UserRole


@dataclass(frozen=True)
class TokenClaims:
    subject: int
    email: str
    role: UserRole
    issued_at: datetime
    expires_at: datetime

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


def issue_token(user, expires_delta: timedelta | None = None) -> str:
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    role = user.role.value if isinstance(user.role, UserRole) else user.role
    to_encode = {
        "sub": str(user.id),
        "email": user.email,
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int(expire.timestamp()),
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def _has_canonical_signature(token: str) -> bool:
    # base64url decoding ignores the unused low bits of the last character
    signature = token.rsplit(".", 1)[-1]
    try:
        raw = base64url_decode(signature.encode("ascii"))
    except ValueError:
        return False
    return base64url_encode(raw).decode("ascii") == signature


def verify_token(token: str) -> TokenClaims:
    # Parse without verifying first so a garbled token is told apart from a forged one
    try:
        jwt.get_unverified_header(token)
        jwt.get_unverified_claims(token)
    except JWTError:
        raise AuthenticationError("Malformed token", reason="Malformed")

    if not _has_canonical_signature(token):
        raise AuthenticationError("Invalid token signature", reason="InvalidSignature")

    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except ExpiredSignatureError:
        raise AuthenticationError("Token has expired", reason="Expired")
    except JWTError:
        raise AuthenticationError("Invalid token signature", reason="InvalidSignature")

    try:
        return TokenClaims(
            subject=int(payload["sub"]),
            email=payload["email"],
            role=UserRole(payload["role"]),
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )
    except (KeyError, TypeError, ValueError):
        raise AuthenticationError("Malformed token claims", reason="Malformed")
