"""Admin authentication: bcrypt password hashes and signed JWT bearer tokens."""
import logging
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError

from config import settings
from core.errors import AuthError

logger = logging.getLogger("fieldops.security")

bearer = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str | None) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # not a bcrypt hash
        return False


def create_access_token(subject: str, role: str, expires_minutes: int | None = None) -> str:
    now = datetime.now(timezone.utc)
    expire = now + timedelta(minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {
        "sub": subject,
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int(expire.timestamp()),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise AuthError("Token has expired")
    except InvalidTokenError as exc:
        raise AuthError(f"Invalid token: {exc}")


async def authenticate(storage, username: str, password: str) -> tuple[str, str] | None:
    """Check credentials against the admin profile, then the users table.

    Returns (username, role) or None.
    """
    profile = await storage.get_admin_profile()
    if profile is not None and profile.username == username:
        if verify_password(password, profile.password_hash):
            await storage.upsert_admin_profile({"last_login_at": datetime.now(timezone.utc)})
            return profile.username, "admin"
        return None

    user = await storage.get_user_by_username(username)
    if user is not None and verify_password(password, user.password_hash):
        return user.username, user.role
    return None


async def require_admin(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
) -> dict:
    """Route dependency. EventSource clients may pass ``?token=`` instead of a header."""
    if not getattr(request.app.state, "auth_enabled", settings.AUTH_ENABLED):
        return {"sub": "anonymous", "role": "admin"}

    token = credentials.credentials if credentials else request.query_params.get("token")
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return decode_token(token)
    except AuthError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=exc.message,
            headers={"WWW-Authenticate": "Bearer"},
        )
