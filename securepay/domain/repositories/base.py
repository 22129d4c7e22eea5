"""
Document Store Interface.
Defines the contract every persistence backend implements.

Filters are dicts AND-ed together:
    {"email": "a@x.com"}                      equality (None matches absent)
    {"expires_at": {"$gt": now}}              comparison ($gt, $lt)
    {"id": {"$in": [...]}}                    membership
    {"full_name": re.compile("^Jo")}          pattern match (search semantics)

Sort is a sequence of (field, direction) with -1 for descending.
"""

from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

USERS = "users"
USER_SESSIONS = "user_sessions"
PAYMENT_TRANSACTIONS = "payment_transactions"

# Unique keys per collection; None values are exempt (sparse uniqueness)
UNIQUE_FIELDS: Dict[str, Tuple[str, ...]] = {
    USERS: ("id", "email", "username", "account_number"),
    USER_SESSIONS: ("id", "session_token"),
    PAYMENT_TRANSACTIONS: ("id", "reference_number"),
}

Record = Dict[str, Any]
Filter = Dict[str, Any]
Sort = Sequence[Tuple[str, int]]


class DocumentStore(Protocol):
    """Interface for record-oriented persistence."""

    backend_name: str

    def find_one(self, collection: str, filter: Filter) -> Optional[Record]:
        """Return the first record matching the filter, or None."""
        ...

    def insert_one(self, collection: str, record: Record) -> str:
        """Insert a record and return its id. Raises ConflictException on duplicate keys."""
        ...

    def update_one(self, collection: str, filter: Filter, values: Record) -> int:
        """Apply values to the first match. Returns the matched count (0 or 1)."""
        ...

    def find(
        self,
        collection: str,
        filter: Filter,
        sort: Optional[Sort] = None,
        limit: Optional[int] = None,
    ) -> List[Record]:
        """Return all matching records, optionally sorted and capped."""
        ...

    def find_one_and_update(self, collection: str, filter: Filter, values: Record) -> Optional[Record]:
        """Atomically update the first match and return it after the update."""
        ...

    def delete_many(self, collection: str, filter: Filter) -> int:
        """Delete all matches and return how many were removed."""
        ...

    def ping(self) -> None:
        """Raise StoreUnavailableException if the backend cannot be reached."""
        ...
