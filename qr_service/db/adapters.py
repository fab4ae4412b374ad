"""
Concrete storage backends.

SQLite (aiosqlite) is the default for local runs and tests. It is a single
file with one writer at a time, so connections are not pooled and writers
wait on the file lock instead of failing immediately. PostgreSQL (asyncpg)
is picked for postgresql URLs.
"""

from typing import Any

from sqlalchemy.pool import NullPool

from qr_service.db.interface import DatabaseAdapter


class SQLiteAdapter(DatabaseAdapter):
    dialect = "sqlite"

    def engine_options(self) -> dict[str, Any]:
        return {
            "poolclass": NullPool,
            "connect_args": {
                "check_same_thread": False,
                "timeout": 15,  # seconds to wait on a locked database file
            },
            "echo": False,
        }

    def on_connect(self, dbapi_connection: Any) -> None:
        # SQLite ships with foreign keys off; qr_scans rows must cascade.
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


class PostgreSQLAdapter(DatabaseAdapter):
    dialect = "postgresql"

    def engine_options(self) -> dict[str, Any]:
        return {
            "pool_size": 10,
            "max_overflow": 20,
            "pool_pre_ping": True,
            "echo": False,
        }


def get_database_adapter(database_url: str) -> DatabaseAdapter:
    """Pick the adapter matching the URL scheme; anything else is treated as SQLite."""
    if database_url.startswith("postgresql"):
        return PostgreSQLAdapter()
    return SQLiteAdapter()
