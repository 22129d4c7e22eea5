"""
SQLAlchemy implementation of the DocumentStore.
Durable backend: uniqueness is enforced by database constraints and every
operation runs in its own transaction, so it either fully applies or not at all.
"""

import re
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Type

from sqlalchemy import and_, inspect as sa_inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import (
    IntegrityError,
    OperationalError,
    SQLAlchemyError,
    TimeoutError as PoolTimeoutError,
)
from sqlalchemy.orm import Session

from securepay.core.exceptions import (
    ConflictException,
    StoreError,
    StoreUnavailableException,
)
from securepay.domain.models.payment import PaymentTransaction
from securepay.domain.models.session import UserSession
from securepay.domain.models.user import User
from securepay.domain.repositories.base import (
    PAYMENT_TRANSACTIONS,
    USER_SESSIONS,
    USERS,
    Filter,
    Record,
    Sort,
)
from securepay.infrastructure.database import Base, create_session_factory

MODELS: Dict[str, Type[Base]] = {
    USERS: User,
    USER_SESSIONS: UserSession,
    PAYMENT_TRANSACTIONS: PaymentTransaction,
}


class SQLAlchemyStore:
    """DocumentStore backed by a relational database."""

    backend_name = "sql"

    def __init__(self, engine: Engine):
        self.engine = engine
        self.session_factory = create_session_factory(engine)

    def create_schema(self) -> None:
        """Create tables and indexes (dev only; use migrations in production)."""
        try:
            Base.metadata.create_all(bind=self.engine)
        except (OperationalError, PoolTimeoutError) as exc:
            raise StoreUnavailableException() from exc

    @contextmanager
    def _session(self) -> Iterator[Session]:
        db = self.session_factory()
        try:
            yield db
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            raise ConflictException("Duplicate record", details={"reason": str(exc.orig)}) from exc
        except (OperationalError, PoolTimeoutError) as exc:
            db.rollback()
            raise StoreUnavailableException() from exc
        except SQLAlchemyError as exc:
            db.rollback()
            raise StoreError() from exc
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def _model(self, collection: str) -> Type[Base]:
        try:
            return MODELS[collection]
        except KeyError:
            raise StoreError(f"Unknown collection '{collection}'") from None

    def _column(self, model: Type[Base], field: str):
        column = getattr(model, field, None)
        if column is None:
            raise StoreError(f"Unknown field '{field}' on {model.__tablename__}")
        return column

    def _clause(self, model: Type[Base], field: str, condition: Any):
        column = self._column(model, field)
        if isinstance(condition, re.Pattern):
            pattern = condition.pattern
            if condition.flags & re.IGNORECASE:
                pattern = f"(?i){pattern}"
            return column.regexp_match(pattern)
        if isinstance(condition, dict):
            clauses = []
            for operator, operand in condition.items():
                if operator == "$gt":
                    clauses.append(column > operand)
                elif operator == "$lt":
                    clauses.append(column < operand)
                elif operator == "$in":
                    clauses.append(column.in_(list(operand)))
                else:
                    raise StoreError(f"Unsupported filter operator '{operator}'")
            return and_(*clauses)
        if condition is None:
            return column.is_(None)
        return column == condition

    def _query(self, db: Session, collection: str, filter: Filter):
        model = self._model(collection)
        clauses = [self._clause(model, field, condition) for field, condition in (filter or {}).items()]
        return db.query(model).filter(*clauses)

    @staticmethod
    def _to_record(obj: Base) -> Record:
        return {attr.key: getattr(obj, attr.key) for attr in sa_inspect(obj).mapper.column_attrs}

    def _apply(self, obj: Base, values: Record) -> None:
        for field, value in values.items():
            self._column(type(obj), field)
            setattr(obj, field, value)

    def find_one(self, collection: str, filter: Filter) -> Optional[Record]:
        with self._session() as db:
            obj = self._query(db, collection, filter).first()
            return self._to_record(obj) if obj is not None else None

    def insert_one(self, collection: str, record: Record) -> str:
        model = self._model(collection)
        for field in record:
            self._column(model, field)
        with self._session() as db:
            obj = model(**record)
            db.add(obj)
            db.flush()
            return obj.id

    def update_one(self, collection: str, filter: Filter, values: Record) -> int:
        with self._session() as db:
            obj = self._query(db, collection, filter).with_for_update().first()
            if obj is None:
                return 0
            self._apply(obj, values)
            return 1

    def find(
        self,
        collection: str,
        filter: Filter,
        sort: Optional[Sort] = None,
        limit: Optional[int] = None,
    ) -> List[Record]:
        model = self._model(collection)
        with self._session() as db:
            query = self._query(db, collection, filter)
            for field, direction in sort or []:
                column = self._column(model, field)
                query = query.order_by(column.desc() if direction < 0 else column.asc())
            if limit is not None:
                query = query.limit(limit)
            return [self._to_record(obj) for obj in query.all()]

    def find_one_and_update(self, collection: str, filter: Filter, values: Record) -> Optional[Record]:
        with self._session() as db:
            obj = self._query(db, collection, filter).with_for_update().first()
            if obj is None:
                return None
            self._apply(obj, values)
            db.flush()
            return self._to_record(obj)

    def delete_many(self, collection: str, filter: Filter) -> int:
        with self._session() as db:
            return self._query(db, collection, filter).delete(synchronize_session=False)

    def ping(self) -> None:
        with self._session() as db:
            db.execute(text("SELECT 1"))
