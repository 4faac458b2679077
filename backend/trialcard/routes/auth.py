import logging

from fastapi import APIRouter, Depends, Request
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.orm import Session

from .. import audit, models, schemas
from ..auth import issue_access_token, issue_refresh_token, refresh_access_token, verify_password
from ..config import Settings, current_settings, get_settings
from ..database import get_db
from ..errors import AuthError, ValidationFailed

_logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)
testing = get_settings().testing


def rate_limit(limit: str):
    if testing:
        def wrapper(func):
            return func
        return wrapper
    return limiter.limit(limit)


router = APIRouter(prefix="/api/login", tags=["auth"])


@router.post("", response_model=schemas.LoginResponse)
@rate_limit("10/minute")
async def login(
    request: Request,
    credentials: schemas.LoginRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(current_settings),
):
    if not credentials.username or not credentials.password:
        raise ValidationFailed("Username and password are required")

    user = db.query(models.User).filter(models.User.username == credentials.username).first()
    if user is None or not user.is_active:
        _logger.warning("Login rejected for unknown or inactive user %s", credentials.username)
        raise AuthError("Invalid username or password")

    # a dangling department reference fails closed before the password is even checked
    department = None
    if user.department_id is not None:
        department = db.get(models.Department, user.department_id)
        if department is None:
            _logger.warning(
                "User %s references missing department %s", user.username, user.department_id
            )
            raise ValidationFailed("Invalid department assigned to user")

    if not verify_password(credentials.password, user.password_hash):
        _logger.warning("Login rejected for %s: wrong password", user.username)
        raise AuthError("Invalid username or password")

    token = issue_access_token(settings, user.user_id, user.username, user.department_id, user.role)
    refresh_token = issue_refresh_token(settings, user.user_id, user.username)

    client_ip = request.client.host if request.client else "unknown"
    audit.log_action(
        db,
        user.user_id,
        user.department_id,
        "Login",
        f"User {user.username} logged in from {client_ip}",
    )

    return schemas.LoginResponse(
        token=token,
        refreshToken=refresh_token,
        user=schemas.UserSummary(
            user_id=user.user_id,
            username=user.username,
            full_name=user.full_name,
            email=user.email,
            department_id=user.department_id,
            department=department.department_name if department else None,
            role=user.role,
            needsPasswordChange=user.needs_password_change,
        ),
        needsEmailVerification=not user.email,
        needsPasswordChange=user.needs_password_change,
        expiresIn=settings.access_token_expires_in,
        message=f"Login successful as {user.role}",
    )


@router.post("/refresh-token", response_model=schemas.RefreshResponse)
@rate_limit("30/minute")
async def refresh_token(
    request: Request,
    body: schemas.RefreshRequest,
    settings: Settings = Depends(current_settings),
):
    if not body.refresh_token:
        raise ValidationFailed("Refresh token required")
    return schemas.RefreshResponse(token=refresh_access_token(settings, body.refresh_token))
