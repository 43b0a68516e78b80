# backend/models/users.py
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base

ROLE_USER = "User"
ROLE_ADMIN = "Admin"


# Represents a user account with credentials, session and password reset state.
# Timestamps are naive server-local datetimes.
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    fullname = Column(String, nullable=False)
    # Unique among active users only, enforced in the routes (soft-deleted rows keep their email)
    email = Column(String, nullable=False, index=True)
    password_hash = Column(String, nullable=False)

    # Latest issued refresh token; overwriting or clearing it revokes older ones
    refresh_token = Column(String, nullable=True)

    reset_password_code = Column(String, nullable=True)
    reset_password_expiry = Column(DateTime, nullable=True)

    deleted_at = Column(DateTime, nullable=True, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now, index=True)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    roles = relationship(
        "UserRole",
        back_populates="user",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    feedbacks = relationship("Feedback", back_populates="user")

    def __init__(self, **kwargs):
        role_names = kwargs.pop("role_names", None) or [ROLE_USER]
        super().__init__(**kwargs)
        self.roles = [UserRole(name=name) for name in role_names]

    @property
    def role_names(self):
        return [r.name for r in self.roles]

    @property
    def is_admin(self) -> bool:
        return ROLE_ADMIN in self.role_names

    def add_role(self, name: str) -> None:
        if name not in self.role_names:
            self.roles.append(UserRole(name=name))


# One named role held by a user
class UserRole(Base):
    __tablename__ = "user_roles"
    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_user_roles_user_name"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(32), nullable=False, index=True)

    user = relationship("User", back_populates="roles")


# Filter expressions shared by the auth and admin queries
def active_filter():
    return User.deleted_at.is_(None)


def non_admin_filter():
    return ~User.roles.any(UserRole.name == ROLE_ADMIN)
