"""
auth/store.py -- SQLAlchemy Core persistence layer for identity records.

Pattern: Repository + Data Mapper. UserStore is the repository; _row_to_user
is the mapper. Login and provisioning code never touch SQL directly.

Lifecycle:
  UserStore(db_url) only records where the database lives. connect() builds
  the engine and creates the schema; it runs once in the API lifespan (or the
  CLI) and the instance is then passed by reference to whoever needs it.
  Any query before connect() raises StoreNotInitializedError instead of
  silently opening a connection.

Security:
  All queries use bound parameters. No f-strings in SQL.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, text
from sqlalchemy.engine import Engine

from auth.errors import StoreNotInitializedError
from auth.models import Role, User

logger = logging.getLogger("authgate.store")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(255), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),  # bcrypt, never plaintext
    Column("role", String(30), nullable=False, server_default=Role.user.value),
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so concurrent logins read without blocking.

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
    """Repository for User records.

    Usage:
        store = UserStore("sqlite:///./authgate.db")
        store.connect()
        store.create_user(User(username="admin1", role=Role.admin, hashed_password=hash_password("secret")))
        user = store.find_by_username("admin1")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        self.db_url = db_url
        self._engine: Engine | None = None

    def connect(self) -> None:
        """Create the engine and the users table. Safe to call more than once."""
        if self._engine is not None:
            return
        connect_args: dict = {}
        if self.db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        engine = create_engine(self.db_url, connect_args=connect_args)
        if self.db_url.startswith("sqlite"):
            event.listen(engine, "connect", _set_wal_mode)
        _metadata.create_all(engine)
        self._engine = engine
        logger.info("User store ready")

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise StoreNotInitializedError("UserStore used before connect()")
        return self._engine

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def find_by_username(self, username: str) -> User | None:
        """Look up a user by exact username (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.username == username)).fetchone()
        return _row_to_user(row) if row is not None else None

    def has_users(self) -> bool:
        """Return True if at least one user record exists."""
        with self.engine.connect() as conn:
            result = conn.execute(text("SELECT COUNT(*) FROM users")).scalar()
        return (result or 0) > 0

    # ------------------------------------------------------------------
    # Provisioning (CLI only -- the login flow never writes)
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> int:
        """Insert a new user and return its assigned database ID.

        Raises sqlalchemy.exc.IntegrityError if the username already exists.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.insert().values(
                    username=user.username,
                    hashed_password=user.hashed_password,
                    role=Role(user.role).value,
                    created_at=_now_iso(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        hashed_password=row.hashed_password,
        role=Role(row.role),
        created_at=row.created_at,
    )
