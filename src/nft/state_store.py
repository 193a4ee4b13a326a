"""Durable ledger state persistence.

Each committed mutation saves the full NftState of one ledger as a JSON
row in SQLite, in a single statement. A crash therefore leaves either the
previous state or the new one on disk, never a mix.

SQLite is used because:
- Single-file database, easy to manage
- WAL mode handles concurrent reads and serialized writes
- No external dependencies

Concurrency Handling:
    Read operations use DEFERRED isolation (default), allowing concurrent
    readers via WAL mode. Write operations use IMMEDIATE isolation so the
    write lock is taken up front.

    Operations retry with exponential backoff on transient SQLite lock
    errors. The retry parameters are configurable:
    - timeouts.state_store_retry_max: Max retry attempts (default: 5)
    - timeouts.state_store_retry_base: Base delay in seconds (default: 0.1)
    - timeouts.state_store_retry_max_delay: Max delay cap (default: 5.0)

Usage:
    store = LedgerStateStore(Path("ledger.db"))

    store.save("solar_system_nft", state)
    state = store.load("solar_system_nft")
"""

from __future__ import annotations

import json
import logging
import sqlite3
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, TypeVar

from ..config import get_validated_config
from .state import NftState

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _with_retry(
    func: Callable[[], T],
    max_retries: int | None = None,
    base_delay: float | None = None,
    max_delay: float | None = None,
) -> T:
    """Execute a function with retry logic for SQLite lock errors.

    Uses exponential backoff to handle transient 'database is locked' errors
    that can occur when multiple threads/processes access SQLite concurrently.

    Args:
        func: Callable to execute
        max_retries: Maximum retry attempts (uses config default if None)
        base_delay: Initial backoff delay in seconds (uses config default if None)
        max_delay: Maximum backoff delay cap (uses config default if None)

    Returns:
        The return value of func

    Raises:
        sqlite3.OperationalError: If func raises a non-lock error or
            exceeds max_retries with lock errors
    """
    config = get_validated_config()
    if max_retries is None:
        max_retries = config.timeouts.state_store_retry_max
    if base_delay is None:
        base_delay = config.timeouts.state_store_retry_base
    if max_delay is None:
        max_delay = config.timeouts.state_store_retry_max_delay

    attempt = 0
    while True:
        attempt += 1
        try:
            return func()
        except sqlite3.OperationalError as e:
            if "database is locked" not in str(e):
                raise

            if attempt >= max_retries:
                logger.warning(
                    "SQLite lock error after %d attempts, giving up: %s",
                    attempt,
                    e,
                )
                raise

            delay = min(base_delay * (2 ** (attempt - 1)), max_delay)
            logger.debug(
                "SQLite lock error (attempt %d/%d), retrying in %.2fs: %s",
                attempt,
                max_retries,
                delay,
                e,
            )
            time.sleep(delay)


class LedgerStateStore:
    """SQLite-backed ledger state persistence, one row per ledger name.

    Each call opens its own connection, so one store instance may be shared
    between threads.
    """

    def __init__(self, db_path: Path | str) -> None:
        """Initialize state store.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_db()

    def _ensure_db(self) -> None:
        """Create database and tables if they don't exist."""
        with self._connect_write() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS ledger_state (
                    name TEXT PRIMARY KEY,
                    state_json TEXT NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            conn.commit()

    def _get_connection(self, isolation_level: str | None = "DEFERRED") -> sqlite3.Connection:
        timeout = get_validated_config().timeouts.state_store_lock
        conn = sqlite3.connect(
            str(self.db_path),
            timeout=timeout,
            isolation_level=isolation_level,
        )
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    @contextmanager
    def _connect_read(self) -> Iterator[sqlite3.Connection]:
        """Read-only connection; concurrent readers are allowed in WAL mode."""
        conn = self._get_connection()
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def _connect_write(self) -> Iterator[sqlite3.Connection]:
        """Write connection with IMMEDIATE isolation; writes serialize."""
        conn = self._get_connection("IMMEDIATE")
        try:
            yield conn
        finally:
            conn.close()

    def save(self, name: str, state: NftState) -> None:
        """Save ledger state, replacing any previous row for name.

        Args:
            name: Ledger name (row key)
            state: State to save
        """
        state_json = json.dumps(state.to_dict())

        def do_save() -> None:
            with self._connect_write() as conn:
                conn.execute(
                    """
                    INSERT OR REPLACE INTO ledger_state (name, state_json, updated_at)
                    VALUES (?, ?, CURRENT_TIMESTAMP)
                    """,
                    (name, state_json),
                )
                conn.commit()

        _with_retry(do_save)

    def load(self, name: str) -> NftState | None:
        """Load ledger state.

        Args:
            name: Ledger name

        Returns:
            NftState if found, None otherwise
        """
        def do_load() -> tuple[str, ...] | None:
            with self._connect_read() as conn:
                cursor = conn.execute(
                    "SELECT state_json FROM ledger_state WHERE name = ?",
                    (name,),
                )
                result: tuple[str, ...] | None = cursor.fetchone()
                return result

        row = _with_retry(do_load)

        if row is None:
            return None

        return NftState.from_dict(json.loads(row[0]))

    def delete(self, name: str) -> None:
        """Delete a ledger's state."""
        def do_delete() -> None:
            with self._connect_write() as conn:
                conn.execute("DELETE FROM ledger_state WHERE name = ?", (name,))
                conn.commit()

        _with_retry(do_delete)

    def list_ledgers(self) -> list[str]:
        """List all ledger names in the store."""
        def do_list() -> list[str]:
            with self._connect_read() as conn:
                cursor = conn.execute("SELECT name FROM ledger_state ORDER BY name")
                return [row[0] for row in cursor.fetchall()]

        return _with_retry(do_list)

    def clear(self) -> None:
        """Delete all ledger states (useful for testing)."""
        def do_clear() -> None:
            with self._connect_write() as conn:
                conn.execute("DELETE FROM ledger_state")
                conn.commit()

        _with_retry(do_clear)
