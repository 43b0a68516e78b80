"""Create an admin account, or grant the Admin role to an existing user.

Usage:
    python create_admin.py --email admin@mail.com --fullname "Site Admin" --password S3cret!
    ADMIN_EMAIL=... ADMIN_PASSWORD=... python create_admin.py
"""
import argparse
import logging
import os
import sys

from sqlalchemy import func
from sqlalchemy.orm import Session

from database import SessionLocal, init_db
from models.users import ROLE_ADMIN, User, active_filter
from utils.hashing import get_password_hash

logger = logging.getLogger(__name__)


def ensure_admin(db: Session, email: str, password: str, fullname: str = "Administrator") -> str:
    """Returns 'created', 'promoted' or 'already_admin'."""
    email = email.strip().lower()
    user = db.query(User).filter(func.lower(User.email) == email, active_filter()).first()

    if user is None:
        user = User(
            fullname=fullname,
            email=email,
            password_hash=get_password_hash(password),
            role_names=[ROLE_ADMIN],
        )
        db.add(user)
        db.commit()
        return "created"

    if user.is_admin:
        return "already_admin"

    user.add_role(ROLE_ADMIN)
    db.commit()
    return "promoted"


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--email", default=os.getenv("ADMIN_EMAIL"))
    parser.add_argument("--password", default=os.getenv("ADMIN_PASSWORD"))
    parser.add_argument("--fullname", default=os.getenv("ADMIN_FULLNAME", "Administrator"))
    args = parser.parse_args(argv)

    if not args.email or not args.password:
        parser.error("--email and --password (or ADMIN_EMAIL / ADMIN_PASSWORD) are required")

    logging.basicConfig(level=logging.INFO)
    init_db()

    db = SessionLocal()
    try:
        outcome = ensure_admin(db, args.email, args.password, args.fullname)
    finally:
        db.close()

    logger.info("Admin %s: %s", args.email, outcome)
    return 0


if __name__ == "__main__":
    sys.exit(main())
