"""
Database module for Room Visualizer generation history.

Provides SQLAlchemy models, async session management and the history repository.
"""

from .models import Base, HistoryRecord
from .repository import MAX_HISTORY_RECORDS, HistoryRepository
from .session import DatabaseManager

__all__ = [
    "Base",
    "HistoryRecord",
    "HistoryRepository",
    "MAX_HISTORY_RECORDS",
    "DatabaseManager",
]
