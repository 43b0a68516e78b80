# backend/routes/auth.py
import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional

from fastapi import APIRouter, Cookie, Depends, Request, Response, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from models.feedback import Feedback
from models.users import User, active_filter
from schemas import user as schemas
from schemas.feedback import FeedbackCreate, FeedbackResponse
from schemas.response import ApiResponse
from utils.audit import client_ip, write_log
from utils.email import send_email
from utils.errors import ApiError
from utils.feedback_gate import require_feedback_gate
from utils.hashing import get_password_hash, verify_password
from utils.tokenJWT import (
    ACCESS_COOKIE,
    REFRESH_COOKIE,
    clear_auth_cookies,
    get_refresh_token,
    issue_tokens,
    require_auth,
    require_guest,
    revoke_refresh_token,
    set_auth_cookies,
    verify_refresh,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


def find_active_user_by_email(db: Session, email: str) -> Optional[User]:
    return (
        db.query(User)
        .filter(func.lower(User.email) == email.strip().lower(), active_filter())
        .first()
    )


# Register a new user
@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(payload: schemas.UserCreate, request: Request, db: Session = Depends(get_db)):
    if find_active_user_by_email(db, payload.email):
        write_log(db, user_id=None, action="REGISTER", resource="auth", status="FAIL",
                  ip=client_ip(request), meta={"email": payload.email, "reason": "Email exists"})
        raise ApiError(409, "User already exists")

    new_user = User(
        fullname=payload.fullname.strip(),
        email=payload.email,
        password_hash=get_password_hash(payload.password),
    )
    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    write_log(db, user_id=new_user.id, action="REGISTER", resource="auth",
              ip=client_ip(request), meta={"email": new_user.email})

    return ApiResponse.of(201, schemas.UserResponse.model_validate(new_user), "User created successfully")


# Authenticate user, issue a token pair and set both cookies
@router.post("/login", dependencies=[Depends(require_guest)])
def login(payload: schemas.UserLogin, request: Request, response: Response, db: Session = Depends(get_db)):
    db_user = find_active_user_by_email(db, payload.email)
    if not db_user:
        write_log(db, user_id=None, action="LOGIN", resource="auth", status="FAIL",
                  ip=client_ip(request), meta={"email": payload.email, "reason": "Unknown email"})
        raise ApiError(404, "User not found")

    if not verify_password(payload.password, db_user.password_hash):
        write_log(db, user_id=db_user.id, action="LOGIN", resource="auth", status="FAIL",
                  ip=client_ip(request), meta={"email": payload.email, "reason": "Invalid password"})
        raise ApiError(401, "Invalid password")

    access_token, refresh_token = issue_tokens(db, db_user.id)
    db.refresh(db_user)

    write_log(db, user_id=db_user.id, action="LOGIN", resource="auth",
              ip=client_ip(request), meta={"email": db_user.email})

    set_auth_cookies(response, access_token, refresh_token)
    result = schemas.LoginResult(
        user=schemas.UserResponse.model_validate(db_user),
        accessToken=access_token,
        refreshToken=refresh_token,
    )
    return ApiResponse.of(200, result, "User logged in successfully")


# Exchange the current refresh token for a new pair
@router.post("/refresh-token")
def refresh_token(
    request: Request,
    response: Response,
    token: Optional[str] = Depends(get_refresh_token),
    db: Session = Depends(get_db),
):
    if not token:
        raise ApiError(401, "Unauthorized Token")

    user, access_token, new_refresh_token = verify_refresh(db, token)

    write_log(db, user_id=user.id, action="REFRESH", resource="auth", ip=client_ip(request))

    set_auth_cookies(response, access_token, new_refresh_token)
    pair = schemas.TokenPair(accessToken=access_token, refreshToken=new_refresh_token)
    return ApiResponse.of(200, pair, "Token updated successfully")


# Reports whether both auth cookies are present; nothing is verified
@router.get("/checkTokens")
def check_tokens(
    access_token: Optional[str] = Cookie(None, alias=ACCESS_COOKIE),
    refresh_token: Optional[str] = Cookie(None, alias=REFRESH_COOKIE),
):
    if not access_token or not refresh_token:
        return ApiResponse.of(200, {"valid": False}, "Tokens not present")
    return ApiResponse.of(200, {"valid": True}, "Tokens are present")


# Email a 6-digit password reset code
@router.post("/send-code")
def send_reset_code(payload: schemas.ResetCodeRequest, request: Request, db: Session = Depends(get_db)):
    user = find_active_user_by_email(db, payload.email)
    if not user:
        raise ApiError(404, "User not found")

    code = f"{secrets.randbelow(900000) + 100000}"
    user.reset_password_code = code
    user.reset_password_expiry = datetime.now() + timedelta(minutes=settings.RESET_CODE_EXPIRE_MINUTES)
    db.commit()

    # The stored code stays valid even if delivery fails
    sent = send_email(
        user.email,
        "Password Reset Code - SLT",
        f"Your password reset code is {code}. It will expire in {settings.RESET_CODE_EXPIRE_MINUTES} minutes.",
    )
    write_log(db, user_id=user.id, action="RESET_CODE", resource="auth",
              status="SUCCESS" if sent else "FAIL", ip=client_ip(request))
    if not sent:
        raise ApiError(500, "Failed to send email")

    return ApiResponse.of(200, None, "Reset code sent to email")


# Set a new password using a previously emailed code
@router.post("/reset")
def reset_password(payload: schemas.PasswordReset, request: Request, db: Session = Depends(get_db)):
    user = find_active_user_by_email(db, payload.email)
    now = datetime.now()

    if (
        not user
        or not user.reset_password_code
        or not user.reset_password_expiry
        or not secrets.compare_digest(user.reset_password_code, payload.code.strip())
        or now >= user.reset_password_expiry
    ):
        raise ApiError(400, "Invalid or expired reset code")

    user.password_hash = get_password_hash(payload.newPassword)
    user.reset_password_code = None
    user.reset_password_expiry = None
    db.commit()

    write_log(db, user_id=user.id, action="RESET_PASSWORD", resource="auth", ip=client_ip(request))

    return ApiResponse.of(200, None, "Password reset successfully")


# --- Routes below require an authenticated user ---

@router.post("/logout")
def logout(
    request: Request,
    response: Response,
    current_user: User = Depends(require_auth),
    db: Session = Depends(get_db),
):
    revoke_refresh_token(db, current_user)
    write_log(db, user_id=current_user.id, action="LOGOUT", resource="auth", ip=client_ip(request))

    clear_auth_cookies(response)
    return ApiResponse.of(200, None, "User logged out successfully")


@router.get("/current-user")
def current_user(current_user: User = Depends(require_auth)):
    return ApiResponse.of(200, schemas.UserResponse.model_validate(current_user), "User fetched successfully")


@router.put("/update-profile")
def update_profile(
    payload: schemas.ProfileUpdate,
    current_user: User = Depends(require_auth),
    db: Session = Depends(get_db),
):
    if not payload.fullname and not payload.password:
        raise ApiError(400, "Please provide fullname or password to update")

    is_updated = False
    if payload.fullname and payload.fullname.strip() != current_user.fullname:
        current_user.fullname = payload.fullname.strip()
        is_updated = True

    if payload.password:
        current_user.password_hash = get_password_hash(payload.password)
        is_updated = True

    if not is_updated:
        raise ApiError(400, "No changes detected")

    db.commit()
    db.refresh(current_user)

    return ApiResponse.of(200, schemas.UserResponse.model_validate(current_user), "Profile updated successfully")


@router.post("/feedback", status_code=status.HTTP_201_CREATED)
def add_feedback(
    payload: FeedbackCreate,
    current_user: User = Depends(require_feedback_gate),
    db: Session = Depends(get_db),
):
    new_feedback = Feedback(user_id=current_user.id, feedback=payload.feedback, stars=payload.stars)
    db.add(new_feedback)
    db.commit()
    db.refresh(new_feedback)

    logger.info("Feedback %s submitted by user %s", new_feedback.id, current_user.id)
    return ApiResponse.of(201, FeedbackResponse.model_validate(new_feedback), "Feedback submitted successfully")
