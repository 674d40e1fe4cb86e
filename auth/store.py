"""
auth/store.py -- SQLAlchemy Core persistence layer for User records.

Pattern: Repository + Data Mapper. UserStore is the repository; _row_to_user
is the mapper. Service and route code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

Soft delete:
  Rows are never removed. soft_delete() sets deleted=1, and every lookup
  filters on deleted=0, so a deleted account is invisible to authentication.

Username uniqueness:
  A partial unique index covers username WHERE deleted = 0. It closes the
  check-then-create race in AuthService.register(): if two requests pass the
  lookup concurrently, the second INSERT fails with IntegrityError, which
  create() turns into DuplicateUsername. Deleted accounts do not block
  re-registration of their username.

Errors:
  Any other SQLAlchemyError is logged and re-raised as StoreUnavailable. No
  retries happen here.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    event,
    false,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.errors import DuplicateUsername, StoreUnavailable
from auth.models import NewUser, User, UserRole

logger = logging.getLogger("todoapp.auth.store")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", String(36), primary_key=True),  # UUID4 string
    Column("username", String(50), nullable=False),
    Column("password_hash", Text, nullable=False),
    Column("role", Integer, nullable=False, server_default=str(int(UserRole.USER))),
    Column("first_name", String(50)),
    Column("first_name_ruby", String(50)),
    Column("last_name", String(50)),
    Column("last_name_ruby", String(50)),
    Column("created_at", String(32), nullable=False),
    Column("created_by", String(36)),
    Column("updated_at", String(32), nullable=False),
    Column("updated_by", String(36)),
    Column("deleted", Boolean, nullable=False, server_default=false()),
)

Index(
    "uq_users_username_active",
    _users.c.username,
    unique=True,
    sqlite_where=_users.c.deleted == false(),
    postgresql_where=_users.c.deleted == false(),
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


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error("User store %s failed: %s", operation, exc)
        raise StoreUnavailable() from exc


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User entities. Implements auth.interfaces.UserRepository.

    Usage:
        store = UserStore("sqlite:///users.db")
        user = store.create(NewUser(username="alice", password_hash=hash_password("secret123")))
        store.find_by_username("alice")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite") and ":memory:" not in db_url and "mode=memory" not in db_url:
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def find_by_username(self, username: str) -> User | None:
        """Look up an active user by exact username (case-sensitive)."""
        with _store_errors("find_by_username"), self.engine.connect() as conn:
            row = conn.execute(
                _users.select().where((_users.c.username == username) & (_users.c.deleted == false()))
            ).fetchone()
        return _row_to_user(row) if row is not None else None

    def find_by_id(self, user_id: str) -> User | None:
        """Look up an active user by id."""
        with _store_errors("find_by_id"), self.engine.connect() as conn:
            row = conn.execute(
                _users.select().where((_users.c.id == user_id) & (_users.c.deleted == false()))
            ).fetchone()
        return _row_to_user(row) if row is not None else None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, new_user: NewUser) -> User:
        """Insert a new user and return the stored record.

        Raises DuplicateUsername if an active user already holds the username
        (enforced by the partial unique index, not by a prior SELECT).
        """
        now = _now_iso()
        user = User(
            id=str(uuid.uuid4()),
            username=new_user.username,
            password_hash=new_user.password_hash,
            role=int(new_user.role),
            first_name=new_user.first_name,
            first_name_ruby=new_user.first_name_ruby,
            last_name=new_user.last_name,
            last_name_ruby=new_user.last_name_ruby,
            created_at=now,
            created_by=new_user.created_by,
            updated_at=now,
            updated_by=new_user.created_by,
            deleted=False,
        )
        try:
            with self.engine.connect() as conn:
                conn.execute(
                    _users.insert().values(
                        id=user.id,
                        username=user.username,
                        password_hash=user.password_hash,
                        role=user.role,
                        first_name=user.first_name,
                        first_name_ruby=user.first_name_ruby,
                        last_name=user.last_name,
                        last_name_ruby=user.last_name_ruby,
                        created_at=user.created_at,
                        created_by=user.created_by,
                        updated_at=user.updated_at,
                        updated_by=user.updated_by,
                        deleted=False,
                    )
                )
                conn.commit()
        except IntegrityError as exc:
            raise DuplicateUsername() from exc
        except SQLAlchemyError as exc:
            logger.error("User store create failed: %s", exc)
            raise StoreUnavailable() from exc
        return user

    def update_password(self, user_id: str, password_hash: str, updated_by: str | None = None) -> bool:
        """Replace the password hash of an active user. Returns False if not found."""
        with _store_errors("update_password"), self.engine.connect() as conn:
            result = conn.execute(
                _users.update()
                .where((_users.c.id == user_id) & (_users.c.deleted == false()))
                .values(password_hash=password_hash, updated_at=_now_iso(), updated_by=updated_by)
            )
            conn.commit()
        return result.rowcount > 0

    def soft_delete(self, user_id: str, deleted_by: str | None = None) -> bool:
        """Mark a user deleted. Returns False if no active user has that id."""
        with _store_errors("soft_delete"), self.engine.connect() as conn:
            result = conn.execute(
                _users.update()
                .where((_users.c.id == user_id) & (_users.c.deleted == false()))
                .values(deleted=True, updated_at=_now_iso(), updated_by=deleted_by)
            )
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        password_hash=row.password_hash,
        role=row.role,
        first_name=row.first_name,
        first_name_ruby=row.first_name_ruby,
        last_name=row.last_name,
        last_name_ruby=row.last_name_ruby,
        created_at=row.created_at,
        created_by=row.created_by,
        updated_at=row.updated_at,
        updated_by=row.updated_by,
        deleted=bool(row.deleted),
    )
