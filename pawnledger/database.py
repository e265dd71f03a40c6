"""Database management module for PawnLedger.

The local store keeps each collection as one JSON array in a SQLite row,
which makes a full-collection replace a single UPDATE and lets several
collections be replaced inside one transaction.
"""
import json
import sqlite3
from contextlib import contextmanager
from datetime import datetime

from pawnledger.exceptions import StorageError, TransactionError
from pawnledger.logging import get_logger

logger = get_logger(__name__)


class DatabaseManager:
    """Handles all SQLite database operations."""

    def __init__(self, db_name="pawnledger.db"):
        self.db_name = db_name
        try:
            self.conn = sqlite3.connect(db_name)
        except sqlite3.Error as e:
            raise StorageError(f"Could not open database: {e}", {'db_name': db_name})
        self._closed = False
        self._in_transaction = False
        self.create_tables()

    def close(self):
        """Close the database connection."""
        if self.conn and not self._closed:
            self.conn.close()
            self._closed = True

    def __del__(self):
        if hasattr(self, 'conn'):
            self.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    @contextmanager
    def transaction(self):
        """Context manager for database transactions with automatic rollback on failure.

        Usage:
            with db.transaction():
                db.write_collection("loans", loans)
                db.write_collection("payments", payments)

        Writes inside the block are committed together; if any exception
        occurs, none of them are.
        """
        self._in_transaction = True
        try:
            yield
            self.conn.commit()
        except sqlite3.Error as e:
            self.conn.rollback()
            raise TransactionError(f"Transaction failed: {str(e)}")
        except Exception:
            self.conn.rollback()
            raise
        finally:
            self._in_transaction = False

    def _commit(self):
        if not self._in_transaction:
            self.conn.commit()

    def create_tables(self):
        cursor = self.conn.cursor()
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS collections (
                name TEXT PRIMARY KEY,
                records TEXT NOT NULL DEFAULT '[]',
                updated_at TEXT
            )
        """)
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS settings (
                key TEXT PRIMARY KEY,
                value TEXT
            )
        """)
        self.conn.commit()

    # Collection operations
    def read_collection(self, name):
        """Return the records of a collection, or an empty list if absent."""
        try:
            cursor = self.conn.cursor()
            cursor.execute("SELECT records FROM collections WHERE name=?", (name,))
            row = cursor.fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to read collection '{name}': {e}", {'collection': name})
        if not row:
            return []
        try:
            return json.loads(row[0])
        except json.JSONDecodeError as e:
            raise StorageError(f"Collection '{name}' is not valid JSON: {e}", {'collection': name})

    def write_collection(self, name, records):
        """Replace every record of a collection."""
        payload = json.dumps(list(records), ensure_ascii=False)
        try:
            cursor = self.conn.cursor()
            cursor.execute(
                "INSERT OR REPLACE INTO collections (name, records, updated_at) VALUES (?, ?, ?)",
                (name, payload, datetime.now().strftime("%Y-%m-%d %H:%M:%S")),
            )
            self._commit()
        except sqlite3.Error as e:
            if not self._in_transaction:
                self.conn.rollback()
            raise StorageError(f"Failed to write collection '{name}': {e}", {'collection': name})
        logger.debug("Wrote %d records to %s", len(records), name)

    # Settings
    def get_setting(self, key, default=None):
        """Get a setting value."""
        cursor = self.conn.cursor()
        cursor.execute("SELECT value FROM settings WHERE key=?", (key,))
        res = cursor.fetchone()
        return res[0] if res else default

    def set_setting(self, key, value):
        """Set a setting value."""
        cursor = self.conn.cursor()
        cursor.execute("INSERT OR REPLACE INTO settings (key, value) VALUES (?, ?)", (key, str(value)))
        self._commit()

    def delete_setting(self, key):
        cursor = self.conn.cursor()
        cursor.execute("DELETE FROM settings WHERE key=?", (key,))
        self._commit()
