# utils/tokenJWT.py
import logging
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from fastapi import Cookie, Depends, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from models.users import ROLE_ADMIN, User, active_filter
from utils.errors import ApiError

logger = logging.getLogger(__name__)

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"

# Header scheme is optional: the cookie is checked first
bearer_scheme = HTTPBearer(auto_error=False)


# Generate a short-lived access token carrying the user id and email
def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "type": ACCESS_TOKEN_TYPE,
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(payload, settings.ACCESS_TOKEN_SECRET, algorithm=settings.ALGORITHM)


# Generate a long-lived refresh token; jti keeps tokens minted in the same second distinct
def create_refresh_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS))
    payload = {
        "sub": str(user.id),
        "type": REFRESH_TOKEN_TYPE,
        "jti": uuid.uuid4().hex,
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(payload, settings.REFRESH_TOKEN_SECRET, algorithm=settings.ALGORITHM)


def _decode(token: str, secret: str, expected_type: str) -> dict:
    try:
        claims = jwt.decode(token, secret, algorithms=[settings.ALGORITHM])
    except JWTError as exc:
        logger.warning("Rejected %s token: %s", expected_type, exc)
        raise ApiError(401, "Invalid or expired token") from exc

    if claims.get("type") != expected_type or not claims.get("sub"):
        logger.warning("Rejected %s token: unexpected claims", expected_type)
        raise ApiError(401, "Invalid or expired token")
    return claims


def _subject_id(claims: dict) -> int:
    try:
        return int(claims["sub"])
    except (KeyError, TypeError, ValueError) as exc:
        raise ApiError(401, "Invalid token subject") from exc


def verify_access(token: str) -> dict:
    """Stateless check of an access token's signature, expiry and type."""
    return _decode(token, settings.ACCESS_TOKEN_SECRET, ACCESS_TOKEN_TYPE)


def get_active_user(db: Session, user_id: int) -> Optional[User]:
    return db.query(User).filter(User.id == user_id, active_filter()).first()


def issue_tokens(db: Session, user_id: int) -> Tuple[str, str]:
    """Sign a new access/refresh pair and store the refresh token on the user.

    Overwriting the stored value revokes every refresh token issued before,
    so a user has exactly one usable refresh token at a time.
    """
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise ApiError(404, "User not found")

    try:
        access_token = create_access_token(user)
        refresh_token = create_refresh_token(user)
        user.refresh_token = refresh_token
        db.commit()
    except (JWTError, SQLAlchemyError) as exc:
        db.rollback()
        logger.exception("Token generation failed for user %s", user_id)
        raise ApiError(500, "Failed to generate tokens") from exc

    return access_token, refresh_token


def verify_refresh(db: Session, token: str) -> Tuple[User, str, str]:
    """Accept a refresh token only if it is the one currently stored, then rotate the pair."""
    claims = _decode(token, settings.REFRESH_TOKEN_SECRET, REFRESH_TOKEN_TYPE)
    user = get_active_user(db, _subject_id(claims))

    if user is None or not user.refresh_token or not secrets.compare_digest(user.refresh_token, token):
        logger.warning("Stale or unknown refresh token presented for subject %s", claims.get("sub"))
        raise ApiError(401, "Unauthorized Token")

    access_token, refresh_token = issue_tokens(db, user.id)
    return user, access_token, refresh_token


def revoke_refresh_token(db: Session, user: User) -> None:
    user.refresh_token = None
    db.commit()


# --- Cookies ---

def set_auth_cookies(response: Response, access_token: str, refresh_token: str) -> None:
    for name, value in ((ACCESS_COOKIE, access_token), (REFRESH_COOKIE, refresh_token)):
        response.set_cookie(name, value, httponly=True, secure=settings.COOKIE_SECURE)


def clear_auth_cookies(response: Response) -> None:
    for name in (ACCESS_COOKIE, REFRESH_COOKIE):
        response.delete_cookie(name, httponly=True, secure=settings.COOKIE_SECURE)


# --- Request dependencies ---

# Cookie first, then Authorization: Bearer
def get_access_token(
    access_cookie: Optional[str] = Cookie(None, alias=ACCESS_COOKIE),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    if access_cookie:
        return access_cookie
    if credentials:
        return credentials.credentials
    return None


def get_refresh_token(
    refresh_cookie: Optional[str] = Cookie(None, alias=REFRESH_COOKIE),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    if refresh_cookie:
        return refresh_cookie
    if credentials:
        return credentials.credentials
    return None


def _user_from_token(db: Session, token: Optional[str]) -> Optional[User]:
    """Verify the access token and load its active user; None if the user is gone."""
    if not token:
        raise ApiError(401, "Unauthorized token")

    claims = verify_access(token)
    return get_active_user(db, _subject_id(claims))


# Retrieve the currently authenticated, non-deleted user
def get_current_user(
    token: Optional[str] = Depends(get_access_token),
    db: Session = Depends(get_db),
) -> User:
    user = _user_from_token(db, token)
    if user is None:
        raise ApiError(401, "Unauthorized")
    return user


require_auth = get_current_user


# Dependency factory for role-based access control
def role_required(*allowed_roles, message: str = "Forbidden"):
    def _checker(
        token: Optional[str] = Depends(get_access_token),
        db: Session = Depends(get_db),
    ) -> User:
        user = _user_from_token(db, token)
        if user is None or (allowed_roles and not set(allowed_roles) & set(user.role_names)):
            raise ApiError(403, message)
        return user
    return _checker


require_admin = role_required(ROLE_ADMIN, message="Forbidden: Admins only")


# Login is refused while an access token is present; the token is not verified
def require_guest(token: Optional[str] = Depends(get_access_token)) -> None:
    if token:
        raise ApiError(401, "User already logged in")
