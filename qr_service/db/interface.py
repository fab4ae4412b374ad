"""
Storage backend contract.

The engine is built the same way for every backend; adapters only
contribute their engine options and a hook that runs on each new DBAPI
connection. Scan history depends on ON DELETE CASCADE, so any adapter
whose database leaves foreign keys off by default must turn them on in
``on_connect``.
"""

from abc import ABC, abstractmethod
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine


class DatabaseAdapter(ABC):
    """Base class for the SQLite and PostgreSQL backends."""

    dialect: str = ""

    def create_engine(self, database_url: str, **overrides) -> AsyncEngine:
        """
        Create the async engine for ``database_url``.

        Args:
            database_url: SQLAlchemy async URL
            **overrides: Engine options that win over the adapter defaults
        """
        options = self.engine_options()
        options.update(overrides)
        engine = create_async_engine(database_url, **options)

        @event.listens_for(engine.sync_engine, "connect")
        def _on_connect(dbapi_connection, connection_record):
            self.on_connect(dbapi_connection)

        return engine

    @abstractmethod
    def engine_options(self) -> dict[str, Any]:
        """Keyword arguments for create_async_engine (pool, connect_args, echo)."""

    def on_connect(self, dbapi_connection: Any) -> None:
        """Per-connection setup. No-op unless the backend needs one."""
