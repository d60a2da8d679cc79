"""
Create an administrator account, or promote an existing account to administrator.

Run from project root:
  python scripts/create_admin.py admin@example.org 'a-strong-password'

The password is only used when the account does not exist yet. Tables are created if missing.
"""
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from msme_passport.database import Base, SessionLocal, engine
from msme_passport.models import User
from msme_passport.services.auth import MIN_PASSWORD_LENGTH, get_password_hash


def main():
    if len(sys.argv) < 2:
        print("Usage: python scripts/create_admin.py EMAIL [PASSWORD]")
        sys.exit(1)
    email = sys.argv[1].strip().lower()
    password = sys.argv[2] if len(sys.argv) > 2 else ""

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == email).first()
        if user:
            user.is_admin = True
            user.email_verified = True
            db.commit()
            print(f"Promoted existing account to admin: {email}")
            return
        if len(password) < MIN_PASSWORD_LENGTH:
            print(f"A password of at least {MIN_PASSWORD_LENGTH} characters is required to create a new admin.")
            sys.exit(1)
        db.add(
            User(
                email=email,
                hashed_password=get_password_hash(password),
                first_name="Admin",
                last_name="",
                email_verified=True,
                is_admin=True,
            )
        )
        db.commit()
        print(f"Created admin: {email}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
