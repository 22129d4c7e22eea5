"""Seed a staff account, a customer with an account number and one pending payment.

Re-running resets the staff password and role, keeps the existing customer
and adds another pending payment for the staff queue.

Usage:
    python scripts/seed_demo_data.py [--staff-email EMAIL] [--staff-password PASSWORD]
                                     [--customer-email EMAIL] [--customer-password PASSWORD]
                                     [--account-number ACC]
"""

import argparse
import os
import sys
from decimal import Decimal

# Add parent dir to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from securepay.application.services.password_service import PasswordHasher
from securepay.application.services.payment_service import create_payment
from securepay.application.services.user_service import create_user, get_user_by_email
from securepay.config import get_settings
from securepay.core.exceptions import AppError
from securepay.core.timeutils import utcnow
from securepay.domain.principal import Principal
from securepay.domain.repositories.base import USERS
from securepay.domain.schemas.payment import CreatePaymentRequest
from securepay.infrastructure.stores.factory import build_store

SAMPLE_PAYMENT = {
    "recipient_name": "JOHN SMITH",
    "recipient_account": "GB82WEST12345698765432",
    "recipient_bank": "HSBC Bank",
    "recipient_country": "United Kingdom",
    "swift_code": "NWBKGB2L",
    "amount": Decimal("1500.00"),
    "currency": "USD",
    "purpose": "Test payment",
}


def seed_staff(store, hasher, email, password):
    existing = get_user_by_email(store, email)
    if existing is None:
        return create_user(
            store,
            hasher,
            email=email,
            password=password,
            full_name="Seeded Staff",
            is_staff=True,
            is_verified=True,
        )
    store.update_one(
        USERS,
        {"id": existing["id"]},
        {
            "password_hash": hasher.hash(password),
            "is_staff": True,
            "is_verified": True,
            "updated_at": utcnow(),
        },
    )
    return existing["id"]


def seed_customer(store, hasher, email, password, account_number):
    existing = get_user_by_email(store, email)
    if existing is not None:
        return existing["id"]
    return create_user(
        store,
        hasher,
        email=email,
        password=password,
        full_name="Customer One",
        account_number=account_number,
    )


def seed_demo_data(store, hasher, staff_email, staff_password, customer_email, customer_password, account_number):
    """Returns the staff id, customer id and the new transaction's receipt."""
    staff_id = seed_staff(store, hasher, staff_email, staff_password)
    customer_id = seed_customer(store, hasher, customer_email, customer_password, account_number)

    customer = Principal(user=store.find_one(USERS, {"id": customer_id}), auth_method="session")
    receipt = create_payment(store, customer, CreatePaymentRequest(**SAMPLE_PAYMENT))
    return staff_id, customer_id, receipt


def parse_args(argv=None):
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Seed SecurePay Portal demo data")
    parser.add_argument("--staff-email", default=settings.BOOTSTRAP_STAFF_EMAIL)
    parser.add_argument("--staff-password", default=settings.BOOTSTRAP_STAFF_PASSWORD)
    parser.add_argument("--customer-email", default="customer1@example.com")
    parser.add_argument("--customer-password", default="CustP@ss1!")
    parser.add_argument("--account-number", default="ACC123456")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    hasher = PasswordHasher(rounds=settings.PASSWORD_BCRYPT_ROUNDS)
    store = build_store(settings, hasher)

    if store.backend_name == "memory":
        print("No reachable DATABASE_URL; seeded data would be lost on exit.")
        return 1

    try:
        staff_id, customer_id, receipt = seed_demo_data(
            store,
            hasher,
            staff_email=args.staff_email,
            staff_password=args.staff_password,
            customer_email=args.customer_email,
            customer_password=args.customer_password,
            account_number=args.account_number,
        )
    except AppError as e:
        print(f"Seeding failed: {e.message}")
        return 1

    print(f"Staff user id: {staff_id}")
    print(f"Customer user id: {customer_id}")
    print(f"Sample transaction id: {receipt.transactionId} ({receipt.referenceNumber})")
    print(f"Staff credentials: {args.staff_email} / {args.staff_password}")
    print(f"Customer credentials: {args.customer_email} / {args.customer_password}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
