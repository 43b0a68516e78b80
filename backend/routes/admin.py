# backend/routes/admin.py
from datetime import datetime

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from database import get_db
from models.users import User, active_filter, non_admin_filter
from routes.auth import find_active_user_by_email
from schemas.reports import Pagination, UserPage
from schemas.response import ApiResponse
from schemas.user import AdminUserUpdate, UserCreate, UserResponse
from utils.audit import client_ip, write_log
from utils.errors import ApiError
from utils.hashing import get_password_hash
from utils.tokenJWT import require_admin

# Every route in this router is admin-only
router = APIRouter(prefix="/api/v1/admin", tags=["Admin"], dependencies=[Depends(require_admin)])


def _get_active_user_or_404(db: Session, user_id: int, message: str = "User not found") -> User:
    user = db.query(User).filter(User.id == user_id, active_filter()).first()
    if not user:
        raise ApiError(404, message)
    return user


# Create a user account on someone's behalf
@router.post("/addUser", status_code=status.HTTP_201_CREATED)
def add_user(
    payload: UserCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    if find_active_user_by_email(db, payload.email):
        raise ApiError(409, "User already exists")

    new_user = User(
        fullname=payload.fullname.strip(),
        email=payload.email,
        password_hash=get_password_hash(payload.password),
    )
    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    write_log(db, user_id=current_user.id, action="ADD_USER", resource="admin",
              ip=client_ip(request), meta={"target_id": new_user.id, "email": new_user.email})

    return ApiResponse.of(201, UserResponse.model_validate(new_user), "User created successfully")


# List active non-admin users with pagination
@router.get("/getAllUsers")
def get_all_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    query = db.query(User).filter(active_filter(), non_admin_filter())

    total = query.count()
    users = query.order_by(User.id.asc()).offset((page - 1) * limit).limit(limit).all()

    result = UserPage(
        users=[UserResponse.model_validate(u) for u in users],
        pagination=Pagination.build(total, page, limit),
    )
    return ApiResponse.of(200, result, "All users fetched successfully")


# Update fullname and/or password of an active user
@router.patch("/updateUser/{user_id}")
def update_user(
    user_id: int,
    payload: AdminUserUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    user = _get_active_user_or_404(db, user_id)

    changed = []
    if payload.fullname:
        user.fullname = payload.fullname.strip()
        changed.append("fullname")
    if payload.password:
        user.password_hash = get_password_hash(payload.password)
        changed.append("password")

    db.commit()
    db.refresh(user)

    write_log(db, user_id=current_user.id, action="UPDATE_USER", resource="admin",
              ip=client_ip(request), meta={"target_id": user.id, "fields": changed})

    return ApiResponse.of(200, UserResponse.model_validate(user), "User updated successfully")


# Soft delete: the row stays, deleted_at hides it everywhere
@router.patch("/deleteUser/{user_id}")
def delete_user(
    user_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    user = _get_active_user_or_404(db, user_id, "User not found or already deleted")

    user.deleted_at = datetime.now()
    user.refresh_token = None
    db.commit()

    write_log(db, user_id=current_user.id, action="DELETE_USER", resource="admin",
              ip=client_ip(request), meta={"target_id": user_id})

    return ApiResponse.of(200, None, "User deleted successfully")
