"""Print stored user records, password hashes omitted.

Usage:
    python scripts/inspect_users.py [--email EMAIL] [--account-number ACC] [--staff-only]
"""

import argparse
import json
import os
import sys

# Add parent dir to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from securepay.application.services.password_service import PasswordHasher
from securepay.config import get_settings
from securepay.domain.principal import PRIVATE_USER_FIELDS
from securepay.domain.repositories.base import USERS
from securepay.infrastructure.stores.factory import build_store


def find_users(store, email=None, account_number=None, staff_only=False):
    query = {}
    if email:
        query["email"] = email
    if account_number:
        query["account_number"] = account_number
    if staff_only:
        query["is_staff"] = True

    users = store.find(USERS, query, sort=[("created_at", 1)])
    return [
        {field: value for field, value in user.items() if field not in PRIVATE_USER_FIELDS}
        for user in users
    ]


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Inspect SecurePay Portal users")
    parser.add_argument("--email")
    parser.add_argument("--account-number")
    parser.add_argument("--staff-only", action="store_true")
    args = parser.parse_args(argv)

    settings = get_settings()
    store = build_store(settings, PasswordHasher(rounds=settings.PASSWORD_BCRYPT_ROUNDS))

    users = find_users(store, email=args.email, account_number=args.account_number, staff_only=args.staff_only)
    print(f"Found {len(users)} user(s) on the {store.backend_name} store")
    for user in users:
        print(json.dumps(user, indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
