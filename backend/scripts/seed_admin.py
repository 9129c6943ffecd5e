#!/usr/bin/env python
"""Seed script to create the initial admin user.

Creates the first Admin account and prints a bearer token for it. Run once
during initial setup; the admin can then provision further users through
POST /api/v1/users/import.

Usage:
    python backend/scripts/seed_admin.py

Environment Variables:
    DATABASE_URL: Database connection string
    JWT_SECRET: Token signing secret (same value the API uses)
    ADMIN_USERNAME: Username for the admin user (default: admin)
    ADMIN_EMAIL: Email for the admin user (default: admin@example.com)
"""

import os
import sys
from pathlib import Path

# Add backend to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import or_, select

from docvault.auth.jwt import create_access_token
from docvault.database import SessionLocal
from docvault.models.user import User


def main():
    """Create initial admin user."""
    admin_username = os.getenv("ADMIN_USERNAME", "admin")
    admin_email = os.getenv("ADMIN_EMAIL", "admin@example.com").lower()

    session = SessionLocal()

    try:
        existing_user = session.execute(
            select(User).where(or_(User.username == admin_username, User.email == admin_email))
        ).scalar_one_or_none()

        if existing_user:
            print(f"ERROR: User {admin_username} or {admin_email} already exists")
            sys.exit(1)

        admin_user = User(username=admin_username, email=admin_email, role="Admin")

        session.add(admin_user)
        session.commit()

        print("SUCCESS: Admin user created")
        print(f"  ID:       {admin_user.id}")
        print(f"  Username: {admin_user.username}")
        print(f"  Email:    {admin_user.email}")
        print(f"  Token:    {create_access_token(user_id=admin_user.id, role=admin_user.role)}")

    except ValueError as e:
        session.rollback()
        print(f"ERROR: Failed to create admin user: {e}")
        sys.exit(1)

    finally:
        session.close()


if __name__ == "__main__":
    main()
