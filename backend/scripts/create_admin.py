#!/usr/bin/env python3
"""Create or update an administrator account."""

import sys
from getpass import getpass
from pathlib import Path

# Make the backend directory importable when run as a plain script
BASE_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BASE_DIR))

from sqlmodel import Session, select

from event_portal.core.security import get_password_hash
from event_portal.db import engine, init_db
from event_portal.models import User, normalize_department_name


def create_admin():
    print("=" * 60)
    print("Create administrator")
    print("=" * 60)

    email = input("Email: ").strip().lower()
    if not email:
        print("Error: email is required")
        return

    name = input("Name: ").strip() or email
    department = normalize_department_name(input("Department (optional): ")) or None
    password = getpass("Password: ").strip()
    if len(password) < 8:
        print("Error: password must be at least 8 characters")
        return

    init_db()
    with Session(engine) as session:
        existing = session.exec(select(User).where(User.email == email)).first()

        if existing:
            response = input(f"User {email} already exists. Promote and reset password? (y/n): ")
            if response.strip().lower() != "y":
                print("Cancelled")
                return
            user = existing
            user.name = name
            user.department = department
            user.hashed_password = get_password_hash(password)
            user.role = "admin"
            user.is_active = True
        else:
            user = User(
                email=email,
                name=name,
                department=department,
                hashed_password=get_password_hash(password),
                role="admin",
            )
        session.add(user)
        session.commit()
        session.refresh(user)

        print(f"\nAdministrator {'updated' if existing else 'created'}")
        print(f"  ID: {user.id}")
        print(f"  Email: {user.email}")
        print(f"  Department: {user.department or '(none)'}")
        print("=" * 60)


if __name__ == "__main__":
    try:
        create_admin()
    except KeyboardInterrupt:
        print("\n\nCancelled by user")
