"""CLI commands for Gatehouse."""

import argparse
import asyncio
import getpass
import sys

from sqlalchemy.orm import Session

from gatehouse.database import SessionLocal
from gatehouse.models.user import User
from gatehouse.services.auth import get_auth_provider


def create_user(username: str, password: str | None = None) -> None:
    """Create a user that can log in with a password."""
    db: Session = SessionLocal()

    try:
        # Check if username already exists
        existing = db.query(User).filter(User.username == username).first()
        if existing:
            print(f"Error: User '{username}' already exists.")
            sys.exit(1)

        # Get password if not provided
        if not password:
            password = getpass.getpass("Password: ")
            password_confirm = getpass.getpass("Confirm password: ")
            if password != password_confirm:
                print("Error: Passwords do not match.")
                sys.exit(1)

        if len(password) < 8:
            print("Error: Password must be at least 8 characters.")
            sys.exit(1)

        auth_provider = get_auth_provider()
        asyncio.run(auth_provider.create_user(db, username, password))

        print(f"User created successfully: {username}")

    finally:
        db.close()


def purge_sessions() -> None:
    """Delete every expired session."""
    db: Session = SessionLocal()

    try:
        auth_provider = get_auth_provider()
        count = asyncio.run(auth_provider.delete_expired_sessions(db))
        print(f"Deleted {count} expired session(s).")

    finally:
        db.close()


def revoke_sessions(username: str) -> None:
    """Log a user out everywhere by deleting all of their sessions."""
    db: Session = SessionLocal()

    try:
        user = db.query(User).filter(User.username == username).first()
        if not user:
            print(f"Error: User '{username}' not found.")
            sys.exit(1)

        auth_provider = get_auth_provider()
        count = asyncio.run(auth_provider.invalidate_user_sessions(db, user.id))
        print(f"Revoked {count} session(s) for {username}.")

    finally:
        db.close()


def main():
    parser = argparse.ArgumentParser(description="Gatehouse CLI")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # create-user command
    create_user_parser = subparsers.add_parser(
        "create-user", help="Create a user account"
    )
    create_user_parser.add_argument(
        "--username", required=True, help="Login username"
    )
    create_user_parser.add_argument(
        "--password", help="Password (will prompt if not provided)"
    )

    # purge-sessions command
    subparsers.add_parser("purge-sessions", help="Delete expired sessions")

    # revoke-sessions command
    revoke_parser = subparsers.add_parser(
        "revoke-sessions", help="Delete every session of a user"
    )
    revoke_parser.add_argument(
        "--username", required=True, help="Login username"
    )

    args = parser.parse_args()

    if args.command == "create-user":
        create_user(args.username, args.password)
    elif args.command == "purge-sessions":
        purge_sessions()
    elif args.command == "revoke-sessions":
        revoke_sessions(args.username)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
