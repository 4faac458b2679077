"""Password hashing, session token issue/verify and the request authentication dependency."""

from datetime import datetime, timedelta, timezone
from typing import Any

from fastapi import Depends, Header
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import ValidationError

from . import schemas
from .config import Settings, current_settings
from .errors import AuthError

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def _sign(claims: dict[str, Any], secret: str, lifetime: timedelta, algorithm: str) -> str:
    now = datetime.now(timezone.utc)
    to_encode = dict(claims)
    to_encode.update({"iat": int(now.timestamp()), "exp": now + lifetime})
    return jwt.encode(to_encode, secret, algorithm=algorithm)


def issue_access_token(
    settings: Settings,
    user_id: int,
    username: str,
    department_id: int | None = None,
    role: str | None = None,
) -> str:
    """Sign an access token carrying identity, department and role claims."""

    claims = {
        "user_id": user_id,
        "username": username,
        "department_id": department_id,
        "role": role,
    }
    return _sign(
        claims,
        settings.jwt_secret,
        timedelta(hours=settings.access_token_expire_hours),
        settings.jwt_algorithm,
    )


def issue_refresh_token(settings: Settings, user_id: int, username: str) -> str:
    return _sign(
        {"user_id": user_id, "username": username},
        settings.refresh_secret,
        timedelta(days=settings.refresh_token_expire_days),
        settings.jwt_algorithm,
    )


def verify_token(token: str, secret: str, algorithm: str = "HS256") -> schemas.TokenClaims:
    """Return the verified claims or raise AuthError.

    Expired, malformed and mis-signed tokens all collapse into the same error.
    """

    try:
        payload = jwt.decode(token, secret, algorithms=[algorithm])
        return schemas.TokenClaims.model_validate(payload)
    except (JWTError, ValidationError):
        raise AuthError("Invalid token")


def refresh_access_token(settings: Settings, refresh_token: str) -> str:
    """Mint a new access token from a refresh token.

    Only user_id and username are carried over. Department and role are left empty, so a
    refreshed session cannot pass department or role guards until the user logs in again.
    """

    try:
        claims = verify_token(refresh_token, settings.refresh_secret, settings.jwt_algorithm)
    except AuthError:
        raise AuthError("Invalid refresh token")
    return issue_access_token(settings, claims.user_id, claims.username)


def get_current_user(
    authorization: str | None = Header(default=None),
    settings: Settings = Depends(current_settings),
) -> schemas.TokenClaims:
    # the raw token is sent as the whole header value, without a "Bearer" prefix
    if not authorization:
        raise AuthError("Access denied. No token provided.")
    return verify_token(authorization, settings.jwt_secret, settings.jwt_algorithm)
