import atexit
import os
import sqlite3
import threading
from contextlib import contextmanager
from typing import List, Optional, Set

from biopush.config import settings
from biopush.shared.logger import app_logger

CONNECTION_PRAGMAS = (
    "PRAGMA foreign_keys = ON",
    "PRAGMA journal_mode = WAL",
    "PRAGMA synchronous = NORMAL",
)

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS organizations (
        id TEXT PRIMARY KEY,
        full_name TEXT,
        short_name TEXT,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS biometric_devices (
        id TEXT PRIMARY KEY,
        sn TEXT UNIQUE NOT NULL, -- always stored lowercase
        name TEXT NOT NULL,
        location_name TEXT NULL,
        organization_id TEXT NULL REFERENCES organizations(id) ON DELETE SET NULL,
        status TEXT DEFAULT 'offline', -- 'online' or 'offline'
        last_seen TEXT NULL, -- UTC ISO-8601
        ip_address TEXT NULL,
        port INTEGER NULL,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
        updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS auth_identities (
        id TEXT PRIMARY KEY,
        email TEXT UNIQUE NOT NULL,
        password_hash TEXT NOT NULL,
        email_confirmed BOOLEAN DEFAULT FALSE,
        user_metadata TEXT, -- JSON object
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS users (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        email TEXT NULL,
        role_id TEXT NULL,
        biometric_id TEXT UNIQUE NULL, -- device PIN
        organization_id TEXT NULL,
        organization_name TEXT NULL,
        reporting_manager_id TEXT NULL,
        photo_url TEXT NULL,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
        updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
    )
    """,
    # Append-only; timestamp is the raw device-local string
    """
    CREATE TABLE IF NOT EXISTS attendance_events (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id TEXT NOT NULL REFERENCES users(id),
        type TEXT NOT NULL, -- 'punch-in' or 'punch-out'
        timestamp TEXT NOT NULL,
        device_id TEXT NULL REFERENCES biometric_devices(id) ON DELETE SET NULL,
        location_name TEXT NULL,
        is_manual BOOLEAN DEFAULT FALSE,
        reason TEXT NULL,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS notifications (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id TEXT NOT NULL,
        message TEXT NOT NULL,
        type TEXT NOT NULL,
        link TEXT NULL,
        is_read BOOLEAN DEFAULT FALSE,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_devices_organization_id ON biometric_devices(organization_id)",
    "CREATE INDEX IF NOT EXISTS idx_attendance_user_id ON attendance_events(user_id)",
    "CREATE INDEX IF NOT EXISTS idx_attendance_device_id ON attendance_events(device_id)",
    "CREATE INDEX IF NOT EXISTS idx_attendance_user_timestamp ON attendance_events(user_id, timestamp)",
    "CREATE INDEX IF NOT EXISTS idx_notifications_user_id ON notifications(user_id)",
)


def resolve_db_path(db_path: Optional[str] = None) -> str:
    """Absolute database path; relative paths are taken from the data directory"""
    return settings.resolve_data_path(db_path or settings.DB_PATH)


class DatabaseManager:
    """One SQLite connection per thread (request threads, notification worker, scheduler)"""

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = resolve_db_path(db_path)

        db_directory = os.path.dirname(self.db_path)
        try:
            os.makedirs(db_directory, exist_ok=True)
        except OSError as exc:
            raise RuntimeError(
                f"Unable to create database directory '{db_directory}': {exc}"
            ) from exc

        self._local = threading.local()
        self._open_connections: Set[sqlite3.Connection] = set()
        self._lock = threading.Lock()

        atexit.register(self.close_all_connections)
        self.init_database()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, check_same_thread=False, timeout=30.0)
        for pragma in CONNECTION_PRAGMAS:
            conn.execute(pragma)
        conn.row_factory = sqlite3.Row
        return conn

    def get_connection(self) -> sqlite3.Connection:
        conn = getattr(self._local, "connection", None)
        if conn is None:
            conn = self._connect()
            self._local.connection = conn
            with self._lock:
                self._open_connections.add(conn)
        return conn

    @contextmanager
    def get_cursor(self):
        """Cursor that commits on success and rolls back on error"""
        conn = self.get_connection()
        cursor = conn.cursor()
        try:
            yield cursor
        except Exception:
            conn.rollback()
            raise
        else:
            conn.commit()
        finally:
            cursor.close()

    def init_database(self):
        with self.get_cursor() as cursor:
            for statement in SCHEMA:
                cursor.execute(statement)

        app_logger.info(f"Database initialized at: {self.db_path}")

    def execute_query(self, query: str, params: tuple = ()) -> sqlite3.Cursor:
        """Run a write statement; the returned cursor still carries rowcount and lastrowid"""
        with self.get_cursor() as cursor:
            cursor.execute(query, params)
            return cursor

    def fetch_one(self, query: str, params: tuple = ()) -> Optional[sqlite3.Row]:
        with self.get_cursor() as cursor:
            cursor.execute(query, params)
            return cursor.fetchone()

    def fetch_all(self, query: str, params: tuple = ()) -> List[sqlite3.Row]:
        with self.get_cursor() as cursor:
            cursor.execute(query, params)
            return cursor.fetchall()

    def close_connection(self):
        """Close the calling thread's connection, if it has one"""
        conn = getattr(self._local, "connection", None)
        if conn is None:
            return

        self._local.connection = None
        with self._lock:
            self._open_connections.discard(conn)

        try:
            conn.close()
        except sqlite3.Error as e:
            app_logger.warning(f"Error closing thread-local connection: {e}")

    def close_all_connections(self):
        """Close every tracked connection; registered with atexit"""
        with self._lock:
            connections = list(self._open_connections)
            self._open_connections.clear()

        for conn in connections:
            try:
                conn.close()
            except sqlite3.Error as e:
                app_logger.warning(f"Error closing connection: {e}")

        app_logger.debug(f"DatabaseManager: closed {len(connections)} connection(s)")


db_manager = DatabaseManager()
