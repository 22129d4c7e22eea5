"""Grant or revoke the staff role for a user by email.

Usage:
    python scripts/promote_staff.py EMAIL [--revoke]
"""

import argparse
import os
import sys

# Add parent dir to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from securepay.application.services.password_service import PasswordHasher
from securepay.application.services.user_service import set_staff_flag
from securepay.config import get_settings
from securepay.core.exceptions import AppError
from securepay.infrastructure.stores.factory import build_store


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Change a user's staff role")
    parser.add_argument("email")
    parser.add_argument("--revoke", action="store_true", help="remove the staff role instead")
    args = parser.parse_args(argv)

    settings = get_settings()
    store = build_store(settings, PasswordHasher(rounds=settings.PASSWORD_BCRYPT_ROUNDS))
    if store.backend_name == "memory":
        print("No reachable DATABASE_URL; nothing to update.")
        return 1

    try:
        user = set_staff_flag(store, args.email, is_staff=not args.revoke)
    except AppError as e:
        print(f"Update failed: {e.message}")
        return 1

    print(f"{user['email']}: is_staff={user['is_staff']}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
