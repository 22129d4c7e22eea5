"""Tests for payment submission, history and staff review."""
import re
from datetime import timedelta
from decimal import Decimal

import pytest

from securepay.application.services import payment_service
from securepay.application.services.payment_service import (
    admin_list,
    calculate_fee,
    create_payment,
    generate_reference_number,
    get_for_user,
    is_valid_transaction_id,
    list_for_user,
    reject_transaction,
    verify_transaction,
)
from securepay.application.services.user_service import create_user
from securepay.core.exceptions import (
    BusinessRuleViolationException,
    EntityNotFoundException,
    InternalError,
    ValidationFailedException,
)
from securepay.domain.models.payment import TransactionStatus
from securepay.domain.principal import Principal
from securepay.domain.repositories.base import PAYMENT_TRANSACTIONS, USERS
from securepay.domain.schemas.payment import CreatePaymentRequest
from securepay.infrastructure.database import create_db_engine
from securepay.infrastructure.stores.memory_store import InMemoryStore
from securepay.infrastructure.stores.sql_store import SQLAlchemyStore
from tests.conftest import VALID_PAYMENT

REFERENCE_RE = re.compile(r"^INT\d{6}[A-Z0-9]{6}$")


@pytest.fixture
def memory_store():
    return InMemoryStore()


def make_principal(store, hasher, email, **extra):
    user_id = create_user(store, hasher, email=email, password="Str0ng!Pass", full_name="Alice Smith", **extra)
    return Principal(user=store.find_one(USERS, {"id": user_id}), auth_method="session")


@pytest.fixture
def alice(memory_store, hasher):
    return make_principal(memory_store, hasher, "alice@example.com", account_number="ACC-100200")


@pytest.fixture
def bob(memory_store, hasher):
    return make_principal(memory_store, hasher, "bob@example.com")


@pytest.fixture
def payment_request():
    return CreatePaymentRequest(**VALID_PAYMENT)


class TestReferenceAndFee:

    def test_reference_format(self):
        for _ in range(20):
            assert REFERENCE_RE.match(generate_reference_number())

    def test_fee_is_two_percent(self):
        assert calculate_fee(Decimal("1500")) == Decimal("30")
        assert calculate_fee(Decimal("1")) == Decimal("0.02")

    def test_fee_keeps_full_precision(self):
        assert calculate_fee(Decimal("10.55")) == Decimal("0.2110")

    def test_transaction_id_format(self):
        assert is_valid_transaction_id("a" * 32)
        assert not is_valid_transaction_id("not-an-id")
        assert not is_valid_transaction_id("")
        assert not is_valid_transaction_id("a" * 32 + "\n")


class TestCreatePayment:
    """Tests for create_payment."""

    def test_creates_pending_transaction(self, memory_store, alice, payment_request):
        receipt = create_payment(memory_store, alice, payment_request)

        assert receipt.status == "pending"
        assert receipt.transactionFee == Decimal("30")
        assert REFERENCE_RE.match(receipt.referenceNumber)

        stored = memory_store.find_one(PAYMENT_TRANSACTIONS, {"id": receipt.transactionId})
        assert stored["user_id"] == alice.user_id
        assert stored["user_account"] == "ACC-100200"
        assert stored["amount"] == Decimal("1500")
        assert stored["is_processed"] is False
        assert stored["reference_number"] == receipt.referenceNumber

    def test_custom_fee_rate(self, memory_store, alice, payment_request):
        receipt = create_payment(memory_store, alice, payment_request, fee_rate=Decimal("0.01"))
        assert receipt.transactionFee == Decimal("15")

    def test_reference_collision_retried_once(self, memory_store, alice, payment_request):
        """Should retry a colliding reference number with a fresh one."""
        references = iter(["INT000001AAAAAA", "INT000001AAAAAA", "INT000001BBBBBB"])
        create_payment(memory_store, alice, payment_request, reference_factory=lambda: next(references))

        receipt = create_payment(memory_store, alice, payment_request, reference_factory=lambda: next(references))
        assert receipt.referenceNumber == "INT000001BBBBBB"

    def test_second_collision_fails(self, memory_store, alice, payment_request):
        """Should give up after one retry with a generic error."""
        create_payment(memory_store, alice, payment_request, reference_factory=lambda: "INT000001AAAAAA")
        with pytest.raises(InternalError, match="Payment initiation failed"):
            create_payment(memory_store, alice, payment_request, reference_factory=lambda: "INT000001AAAAAA")
        assert len(memory_store.find(PAYMENT_TRANSACTIONS, {})) == 1

    def test_whitelist_recheck(self, memory_store, alice):
        """Should reject input that bypassed schema validation."""
        request = CreatePaymentRequest.model_construct(**{**VALID_PAYMENT, "recipient_name": "J0hn"})
        with pytest.raises(ValidationFailedException, match="Invalid recipient name"):
            create_payment(memory_store, alice, request)

    def test_whitelist_recheck_rejects_trailing_newline(self, memory_store, alice):
        request = CreatePaymentRequest.model_construct(**{**VALID_PAYMENT, "recipient_account": "GB82WEST123\n"})
        with pytest.raises(ValidationFailedException, match="Invalid recipient account format"):
            create_payment(memory_store, alice, request)
        assert memory_store.find(PAYMENT_TRANSACTIONS, {}) == []


@pytest.fixture(params=["memory", "sql"])
def backend(request):
    if request.param == "memory":
        return InMemoryStore()
    store = SQLAlchemyStore(create_db_engine("sqlite://"))
    store.create_schema()
    return store


class TestStoredPrecision:
    """Amount and fee must read back exactly as computed, whichever backend holds them."""

    @pytest.mark.parametrize(
        "amount, fee_rate, fee",
        [
            ("1234.56", "0.02", "24.6912"),
            ("1.01", "0.0175", "0.017675"),
            ("49999.99", "0.02", "999.9998"),
        ],
    )
    def test_round_trip(self, backend, hasher, amount, fee_rate, fee):
        principal = make_principal(backend, hasher, "alice@example.com")
        request = CreatePaymentRequest(**{**VALID_PAYMENT, "amount": amount})

        receipt = create_payment(backend, principal, request, fee_rate=Decimal(fee_rate))
        assert receipt.transactionFee == Decimal(fee)

        stored = backend.find_one(PAYMENT_TRANSACTIONS, {"id": receipt.transactionId})
        assert stored["amount"] == Decimal(amount)
        assert stored["transaction_fee"] == Decimal(fee)


class TestUserQueries:
    """Tests for list_for_user and get_for_user."""

    def test_history_newest_first_and_scoped(self, memory_store, alice, bob, payment_request, utc_clock):
        first = create_payment(memory_store, alice, payment_request, now=utc_clock)
        utc_clock.advance(timedelta(minutes=1))
        second = create_payment(memory_store, alice, payment_request, now=utc_clock)
        create_payment(memory_store, bob, payment_request, now=utc_clock)

        history = list_for_user(memory_store, alice)
        assert [t["id"] for t in history] == [second.transactionId, first.transactionId]

    def test_history_capped(self, memory_store, alice, payment_request, monkeypatch):
        monkeypatch.setattr(payment_service, "HISTORY_LIMIT", 2)
        for _ in range(3):
            create_payment(memory_store, alice, payment_request)
        assert len(list_for_user(memory_store, alice)) == 2

    def test_get_own_transaction(self, memory_store, alice, payment_request):
        receipt = create_payment(memory_store, alice, payment_request)
        assert get_for_user(memory_store, alice, receipt.transactionId)["id"] == receipt.transactionId

    def test_other_users_transaction_not_found(self, memory_store, alice, bob, payment_request):
        """Should hide another user's transaction as not found."""
        receipt = create_payment(memory_store, alice, payment_request)
        with pytest.raises(EntityNotFoundException, match="Transaction not found"):
            get_for_user(memory_store, bob, receipt.transactionId)

    def test_malformed_id(self, memory_store, alice):
        with pytest.raises(ValidationFailedException, match="Invalid transaction ID"):
            get_for_user(memory_store, alice, "not-an-id")


class TestStaffReview:
    """Tests for admin_list, verify_transaction and reject_transaction."""

    def test_admin_list_enriched(self, memory_store, alice, bob, payment_request):
        create_payment(memory_store, alice, payment_request)
        create_payment(memory_store, bob, payment_request)

        transactions = admin_list(memory_store)
        assert len(transactions) == 2
        assert {t["user_email"] for t in transactions} == {"alice@example.com", "bob@example.com"}
        assert all(t["user_name"] == "Alice Smith" for t in transactions)

    def test_admin_list_status_filter(self, memory_store, alice, payment_request):
        receipt = create_payment(memory_store, alice, payment_request)
        create_payment(memory_store, alice, payment_request)
        verify_transaction(memory_store, receipt.transactionId)

        completed = admin_list(memory_store, TransactionStatus.COMPLETED)
        assert [t["id"] for t in completed] == [receipt.transactionId]
        assert len(admin_list(memory_store, TransactionStatus.PENDING)) == 1

    def test_admin_list_missing_submitter(self, memory_store, alice, payment_request):
        create_payment(memory_store, alice, payment_request)
        memory_store.delete_many(USERS, {"id": alice.user_id})
        transaction = admin_list(memory_store)[0]
        assert transaction["user_email"] == ""
        assert transaction["user_name"] == ""

    def test_verify_completes(self, memory_store, alice, payment_request, utc_clock):
        receipt = create_payment(memory_store, alice, payment_request)
        transaction = verify_transaction(memory_store, receipt.transactionId, now=utc_clock)
        assert transaction["status"] == "completed"
        assert transaction["is_processed"] is True
        assert transaction["processed_at"] == utc_clock()

    def test_verify_twice_is_idempotent(self, memory_store, alice, payment_request, utc_clock):
        """Should return the completed transaction unchanged on repeat."""
        receipt = create_payment(memory_store, alice, payment_request)
        first = verify_transaction(memory_store, receipt.transactionId, now=utc_clock)
        utc_clock.advance(timedelta(minutes=5))
        second = verify_transaction(memory_store, receipt.transactionId, now=utc_clock)
        assert second["status"] == "completed"
        assert second["processed_at"] == first["processed_at"]

    def test_reject_records_reason(self, memory_store, alice, payment_request):
        receipt = create_payment(memory_store, alice, payment_request)
        transaction = reject_transaction(memory_store, receipt.transactionId, reason="Beneficiary mismatch")
        assert transaction["status"] == "rejected"
        assert transaction["rejection_reason"] == "Beneficiary mismatch"

    def test_terminal_states_are_final(self, memory_store, alice, payment_request):
        """Should refuse to move a transaction between terminal states."""
        receipt = create_payment(memory_store, alice, payment_request)
        verify_transaction(memory_store, receipt.transactionId)

        with pytest.raises(BusinessRuleViolationException, match="Transaction is already completed") as exc_info:
            reject_transaction(memory_store, receipt.transactionId)
        assert exc_info.value.status_code == 409

        rejected = create_payment(memory_store, alice, payment_request)
        reject_transaction(memory_store, rejected.transactionId)
        with pytest.raises(BusinessRuleViolationException, match="Transaction is already rejected"):
            verify_transaction(memory_store, rejected.transactionId)

    def test_unknown_transaction(self, memory_store):
        with pytest.raises(EntityNotFoundException):
            verify_transaction(memory_store, "f" * 32)

    def test_malformed_id_not_found(self, memory_store):
        with pytest.raises(EntityNotFoundException):
            reject_transaction(memory_store, "bogus")
