"""Database schema and connection management for SQLite."""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from renter.config import DATABASE_PATH


def init_database() -> None:
    """
    Initialize database and create tables if they don't exist.
    """
    db_path = Path(DATABASE_PATH)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    with get_db_connection() as conn:
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS rentals (
                nickname TEXT PRIMARY KEY,
                total_pieces INTEGER NOT NULL,
                created_at TEXT NOT NULL
            )
        """)

        # Currency values can exceed SQLite's 64-bit INTEGER, so host and
        # contract are kept as JSON text.
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS pieces (
                nickname TEXT NOT NULL,
                piece_index INTEGER NOT NULL,
                host_id TEXT NOT NULL,
                host TEXT NOT NULL,
                contract TEXT NOT NULL,
                PRIMARY KEY(nickname, piece_index),
                FOREIGN KEY(nickname) REFERENCES rentals(nickname) ON DELETE CASCADE
            )
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_pieces_host ON pieces(host_id)
        """)

        conn.commit()


@contextmanager
def get_db_connection() -> Generator[sqlite3.Connection, None, None]:
    """
    Context manager for database connections.
    """
    conn = sqlite3.connect(DATABASE_PATH)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
    finally:
        conn.close()
