#!/usr/bin/env python
"""
Script untuk membuat admin user di CheckMate Auth.
Usage:
    python scripts/create_admin.py
    python scripts/create_admin.py --non-interactive <email> <name> <password>
"""

import asyncio
import sys
import getpass

from checkmate_auth.core.constants import UserRole
from checkmate_auth.core.exceptions import CheckmateAuthException
from checkmate_auth.core.security import security
from checkmate_auth.db.session import SessionLocal, init_db, close_db
from checkmate_auth.models.user import User
from checkmate_auth.services.audit import AuditService
from checkmate_auth.services.user import UserService
from checkmate_auth.utils.validators import is_valid_email


def get_user_input() -> dict:
    """Get admin user details from user input."""
    print("\n=== Create Admin User ===\n")

    while True:
        email = input("Admin email address: ").strip()
        if is_valid_email(email):
            break
        print("Invalid email format. Please try again.")

    while True:
        name = input("Admin name: ").strip()
        if name:
            break
        print("Name must not be empty.")

    while True:
        password = getpass.getpass("Admin password: ")

        is_valid, errors = security.validate_password_strength(password)
        if not is_valid:
            print("\nPassword does not meet requirements:")
            for error in errors:
                print(f"  - {error}")
            print()
            continue

        confirm_password = getpass.getpass("Confirm password: ")
        if password != confirm_password:
            print("Passwords do not match. Please try again.")
            continue

        break

    return {"email": email, "name": name, "password": password}


async def create_admin_user(email: str, name: str, password: str) -> User:
    """
    Create admin user in database.

    Args:
        email: Admin email
        name: Admin display name
        password: Admin password

    Returns:
        Created admin user
    """
    async with SessionLocal() as db:
        user_service = UserService(db, audit_service=AuditService(SessionLocal))
        admin_user = await user_service.create_user(
            email=email,
            name=name,
            password=password,
            role=UserRole.ADMIN
        )
        await user_service.audit_service.drain()
        return admin_user


async def main() -> None:
    """Main function."""
    try:
        print("Initializing database connection...")
        await init_db()

        if len(sys.argv) > 1 and sys.argv[1] == "--non-interactive":
            # Non-interactive mode for automation
            if len(sys.argv) != 5:
                print("Usage: python create_admin.py --non-interactive <email> <name> <password>")
                sys.exit(1)
            user_data = {"email": sys.argv[2], "name": sys.argv[3], "password": sys.argv[4]}
        else:
            user_data = get_user_input()

        print("\nCreating admin user...")
        admin_user = await create_admin_user(**user_data)

        print("\nAdmin user created successfully!")
        print(f"   Email: {admin_user.u_email}")
        print(f"   Name: {admin_user.u_name}")
        print(f"   ID: {admin_user.u_id}")

    except KeyboardInterrupt:
        print("\n\nOperation cancelled by user.")
        sys.exit(0)
    except CheckmateAuthException as e:
        print(f"\nError creating admin user: {e.message} {e.details or ''}")
        sys.exit(1)
    finally:
        await close_db()


if __name__ == "__main__":
    asyncio.run(main())
