"""Create a portal user directly in the configured store.

Usage:
    python scripts/seed_user.py EMAIL PASSWORD [--username NAME] [--account-number ACC]
                                [--full-name NAME] [--staff]
"""

import argparse
import os
import sys

# Add parent dir to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from securepay.application.services.password_service import PasswordHasher
from securepay.application.services.user_service import create_user, get_user_by_email
from securepay.config import get_settings
from securepay.core.exceptions import AppError
from securepay.infrastructure.stores.factory import build_store


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Seed a SecurePay Portal user")
    parser.add_argument("email")
    parser.add_argument("password")
    parser.add_argument("--username")
    parser.add_argument("--account-number")
    parser.add_argument("--full-name", default="Seeded User")
    parser.add_argument("--staff", action="store_true", help="grant the staff role")
    return parser.parse_args(argv)


def seed(argv=None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    hasher = PasswordHasher(rounds=settings.PASSWORD_BCRYPT_ROUNDS)
    store = build_store(settings, hasher)

    if store.backend_name == "memory":
        print("No reachable DATABASE_URL; a seeded user would be lost on exit.")
        return 1

    if get_user_by_email(store, args.email):
        print(f"User {args.email} already exists.")
        return 1

    try:
        user_id = create_user(
            store,
            hasher,
            email=args.email,
            password=args.password,
            full_name=args.full_name,
            username=args.username,
            account_number=args.account_number,
            is_staff=args.staff,
            is_verified=True,
        )
    except AppError as e:
        print(f"Seeding failed: {e.message}")
        return 1

    print(f"Inserted user id: {user_id} (staff={args.staff})")
    return 0


if __name__ == "__main__":
    sys.exit(seed())
