"""
Password hashing and bearer token helpers

Tokens are HS256 JWTs carrying the user id (sub), a unique id (jti), the
username (name) and the user's roles. They are never stored server side,
so a token stays valid until it expires.
"""
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from passlib.context import CryptContext

from storeback.core.config import Settings, settings as default_settings
from storeback.core.exceptions import ConfigurationError, Unauthorized

MIN_KEY_BYTES = 32

pwd_context = CryptContext(
    schemes=["argon2"],
    default="argon2",
    deprecated="auto",
)


def hash_password(plain_password: str) -> str:
    return pwd_context.hash(plain_password)


# Password hashing configuration and verification
def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def validate_signing_key(key: Optional[str]) -> bytes:
    """Return the key as bytes, or raise ConfigurationError if it is unusable"""
    if not key:
        raise ConfigurationError("JWT_SECRET_KEY is not set")
    key_bytes = key.encode("utf-8")
    if len(key_bytes) < MIN_KEY_BYTES:
        raise ConfigurationError(f"JWT_SECRET_KEY must be at least {MIN_KEY_BYTES} bytes long")
    return key_bytes


def create_access_token(user, settings: Settings = default_settings) -> str:
    key = validate_signing_key(settings.jwt_secret_key)
    now = datetime.now(timezone.utc)
    payload: Dict[str, Any] = {
        "sub": str(user.id),
        "jti": str(uuid.uuid4()),
        "name": user.username,
        "roles": [user.role] if user.role else [],
        "iat": now,
        "exp": now + timedelta(hours=settings.jwt_expire_hours),
    }
    if settings.jwt_issuer:
        payload["iss"] = settings.jwt_issuer
    if settings.jwt_audience:
        payload["aud"] = settings.jwt_audience
    return jwt.encode(payload, key, algorithm=settings.jwt_algorithm)


def decode_token(token: str, settings: Settings = default_settings) -> Dict[str, Any]:
    key = validate_signing_key(settings.jwt_secret_key)
    try:
        return jwt.decode(
            token,
            key,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            options={"require": ["exp", "sub", "jti"]},
        )
    except jwt.ExpiredSignatureError:
        logging.info("Rejected expired token")
        raise Unauthorized("Token has expired")
    except jwt.InvalidTokenError as e:
        logging.info(f"Rejected invalid token: {str(e)}")
        raise Unauthorized("Invalid token")
