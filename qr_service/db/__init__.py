"""
Persistence: table models, storage adapters and session handling.
"""

from qr_service.db.interface import DatabaseAdapter
from qr_service.db.session import async_session_maker, engine, get_session

__all__ = [
    "DatabaseAdapter",
    "async_session_maker",
    "engine",
    "get_session",
]
