"""
auth/store.py -- SQLAlchemy Core persistence layer for user records.

Pattern: Repository + Data Mapper. UserStore is the repository; _row_to_user
is the mapper. The auth service never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  Identity uniqueness is a UNIQUE constraint on users.identity, enforced by
  the database inside the INSERT itself. There is no check-then-insert and no
  in-process lock: two concurrent create() calls for the same identity -- from
  the same process or from different instances sharing the DB -- resolve to
  exactly one row and one IntegrityError, which create() turns into
  DuplicateIdentity.

Error translation:
  IntegrityError   -> DuplicateIdentity
  any other SQLAlchemyError -> StoreUnavailable (original chained, never shown
  to clients). The store does not retry; the caller owns retry policy.

DB path: auth/policylab_auth.db by default (DATABASE_URL overrides).

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.errors import DuplicateIdentity, StoreUnavailable
from auth.models import UserRecord

logger = logging.getLogger("policylab.auth")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("identity", String(255), nullable=False, unique=True),
    Column("display_name", String(100), nullable=False),
    Column("password_hash", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for UserRecord entities.

    Usage:
        store = UserStore()
        record = store.create("alice@example.com", hasher.hash("Secret123"), "Alice")
        found = store.find_by_identity("alice@example.com")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        try:
            _metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            raise StoreUnavailable() from exc

    def create(self, identity: str, password_hash: str, display_name: str) -> UserRecord:
        """Insert a new user and return the stored record.

        Raises DuplicateIdentity if the identity already exists (UNIQUE
        constraint), StoreUnavailable on any other database failure.
        """
        created_at = _now_iso()
        try:
            with self.engine.connect() as conn:
                result = conn.execute(
                    _users.insert().values(
                        identity=identity,
                        display_name=display_name,
                        password_hash=password_hash,
                        created_at=created_at,
                    )
                )
                conn.commit()
        except IntegrityError as exc:
            raise DuplicateIdentity() from exc
        except SQLAlchemyError as exc:
            logger.error("User insert failed: %s", type(exc).__name__)
            raise StoreUnavailable() from exc
        return UserRecord(
            id=result.inserted_primary_key[0],
            identity=identity,
            display_name=display_name,
            password_hash=password_hash,
            created_at=created_at,
        )

    def find_by_identity(self, identity: str) -> UserRecord | None:
        """Look up a user by exact (already normalized) identity. Returns None if not found."""
        return self._fetch_one(_users.select().where(_users.c.identity == identity))

    def get_by_id(self, user_id: int) -> UserRecord | None:
        """Look up a user by primary key. Returns None if not found."""
        return self._fetch_one(_users.select().where(_users.c.id == user_id))

    def count(self) -> int:
        try:
            with self.engine.connect() as conn:
                result = conn.execute(select(func.count()).select_from(_users)).scalar()
        except SQLAlchemyError as exc:
            raise StoreUnavailable() from exc
        return result or 0

    def ping(self) -> bool:
        """Return True if the database answers a trivial query. Used by /health."""
        try:
            with self.engine.connect() as conn:
                conn.execute(select(1))
        except SQLAlchemyError:
            return False
        return True

    def close(self) -> None:
        self.engine.dispose()

    def _fetch_one(self, query) -> UserRecord | None:
        try:
            with self.engine.connect() as conn:
                row = conn.execute(query).fetchone()
        except SQLAlchemyError as exc:
            logger.error("User lookup failed: %s", type(exc).__name__)
            raise StoreUnavailable() from exc
        return _row_to_user(row) if row is not None else None


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> UserRecord:
    return UserRecord(
        id=row.id,
        identity=row.identity,
        display_name=row.display_name,
        password_hash=row.password_hash,
        created_at=row.created_at,
    )
