"""Tests for registration and credential checks."""
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from securepay.application.services.user_service import authenticate_user, register_user
from securepay.core.exceptions import ConflictException, UnauthorizedException
from securepay.domain.repositories.base import USERS
from securepay.infrastructure.stores.memory_store import InMemoryStore
from tests.conftest import STRONG_PASSWORD


class TestRegisterUser:

    def test_registers_customer(self, hasher):
        store = InMemoryStore()
        user_id = register_user(store, hasher, "alice@example.com", STRONG_PASSWORD)

        user = store.find_one(USERS, {"id": user_id})
        assert user["email"] == "alice@example.com"
        assert user["is_staff"] is False
        assert hasher.verify(STRONG_PASSWORD, user["password_hash"])

    def test_duplicate_email(self, hasher):
        store = InMemoryStore()
        register_user(store, hasher, "alice@example.com", STRONG_PASSWORD)
        with pytest.raises(ConflictException, match="Email already registered"):
            register_user(store, hasher, "alice@example.com", STRONG_PASSWORD)

    def test_concurrent_registrations_single_winner(self, hasher):
        """Should let exactly one of several simultaneous registrations through."""
        store = InMemoryStore()
        workers = 6
        start = threading.Barrier(workers)

        def register(_):
            start.wait()
            try:
                return register_user(store, hasher, "race@example.com", STRONG_PASSWORD)
            except ConflictException as exc:
                return exc

        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(register, range(workers)))

        winners = [result for result in results if isinstance(result, str)]
        conflicts = [result for result in results if isinstance(result, ConflictException)]
        assert len(winners) == 1
        assert len(conflicts) == workers - 1
        assert all(exc.message == "Email already registered" for exc in conflicts)
        assert len(store.find(USERS, {"email": "race@example.com"})) == 1


class TestAuthenticateUser:

    def test_wrong_password(self, hasher):
        store = InMemoryStore()
        register_user(store, hasher, "alice@example.com", STRONG_PASSWORD)
        with pytest.raises(UnauthorizedException):
            authenticate_user(store, hasher, email="alice@example.com", password="Wr0ng!Pass")
