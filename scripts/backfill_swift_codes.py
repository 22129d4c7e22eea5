"""Set a default SWIFT code on transactions stored without one.

Usage:
    python scripts/backfill_swift_codes.py [--swift-code NWBKGB2L]
"""

import argparse
import os
import sys

# Add parent dir to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from securepay.application.services.password_service import PasswordHasher
from securepay.config import get_settings
from securepay.core.exceptions import AppError
from securepay.core.timeutils import utcnow
from securepay.domain.repositories.base import PAYMENT_TRANSACTIONS, DocumentStore
from securepay.domain.schemas.payment import SWIFT_RE
from securepay.infrastructure.stores.factory import build_store


def backfill(store: DocumentStore, swift_code: str) -> int:
    updated = 0
    for transaction in store.find(PAYMENT_TRANSACTIONS, {"swift_code": None}):
        updated += store.update_one(
            PAYMENT_TRANSACTIONS,
            {"id": transaction["id"], "swift_code": None},
            {"swift_code": swift_code, "updated_at": utcnow()},
        )
    return updated


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Backfill missing SWIFT codes")
    parser.add_argument("--swift-code", default="NWBKGB2L")
    args = parser.parse_args(argv)

    if not SWIFT_RE.fullmatch(args.swift_code):
        print(f"Invalid SWIFT code: {args.swift_code}")
        return 1

    settings = get_settings()
    store = build_store(settings, PasswordHasher(rounds=settings.PASSWORD_BCRYPT_ROUNDS))
    try:
        count = backfill(store, args.swift_code)
    except AppError as e:
        print(f"Backfill failed: {e.message}")
        return 1

    print(f"Updated transactions: {count}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
