"""Grant the admin role to an existing account.

Roles are never changed through the API; the salon owner is promoted once
from the server shell.

Usage:
    python -m nailbook.promote_admin owner@example.com
"""
import sys

from nailbook.database import SessionLocal
from nailbook.models.user import ROLE_ADMIN, User


def promote(email: str) -> bool:
    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == email.strip().lower()).first()
        if user is None:
            return False
        user.role = ROLE_ADMIN
        db.commit()
        return True
    finally:
        db.close()


def main() -> None:
    if len(sys.argv) != 2:
        print("Usage: python -m nailbook.promote_admin <email>", file=sys.stderr)
        sys.exit(2)
    if not promote(sys.argv[1]):
        print(f"No account found for {sys.argv[1]}", file=sys.stderr)
        sys.exit(1)
    print(f"{sys.argv[1]} is now an admin")


if __name__ == "__main__":
    main()
