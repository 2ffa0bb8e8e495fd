#!/usr/bin/env python3
"""
create_admin.py - create an admin account, or promote an existing user
"""
import argparse, getpass
from sqlalchemy import select

from enielexpress.db.session import SessionLocal
from enielexpress.db.models import User, UserRole
from enielexpress.security.utils import hash_password

def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("email")
    ap.add_argument("--first-name", default="Admin")
    ap.add_argument("--last-name", default="User")
    ap.add_argument("--password", help="Prompted for when omitted")
    args = ap.parse_args()

    email = args.email.strip().lower()
    with SessionLocal() as db:
        user = db.execute(select(User).where(User.email == email)).scalar_one_or_none()
        if user:
            user.role = UserRole.ADMIN
            print(f"Promoted {email} to admin")
        else:
            password = args.password or getpass.getpass("Password: ")
            if len(password) < 6:
                raise SystemExit("Password must be at least 6 characters")
            db.add(User(first_name=args.first_name, last_name=args.last_name, email=email,
                        password_hash=hash_password(password), role=UserRole.ADMIN))
            print(f"Created admin {email}")
        db.commit()

if __name__ == "__main__":
    main()
