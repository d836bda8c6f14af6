"""Password hashing and JWT access tokens"""
import hashlib
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from infrastructure.config import get_settings

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__ident="2b"
)

# bcrypt ignores everything past 72 bytes
BCRYPT_MAX_BYTES = 72


def _prepare_password(password: str) -> str:
    """Longer passwords are reduced to their SHA-256 hex digest (64 chars)"""
    password_bytes = password.encode("utf-8")
    if len(password_bytes) > BCRYPT_MAX_BYTES:
        return hashlib.sha256(password_bytes).hexdigest()
    return password


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(_prepare_password(plain_password), hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(_prepare_password(password))


def create_access_token(
    subject: str,
    email: Optional[str] = None,
    roles: Iterable[str] = (),
    expires_delta: Optional[timedelta] = None
) -> str:
    """Signed token for ``subject`` carrying its email and roles"""
    settings = get_settings()
    issued_at = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)

    claims: Dict[str, Any] = {
        "sub": subject,
        "email": email or "",
        "roles": list(roles),
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "iat": issued_at,
        "exp": issued_at + expires_delta,
    }
    return jwt.encode(claims, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    """Verify signature, lifetime, issuer and audience; raises JWTError otherwise"""
    settings = get_settings()
    payload = jwt.decode(
        token,
        settings.secret_key,
        algorithms=[settings.jwt_algorithm],
        audience=settings.jwt_audience,
        issuer=settings.jwt_issuer,
    )
    if not payload.get("sub"):
        raise JWTError("Token has no subject")
    return payload
