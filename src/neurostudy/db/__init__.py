"""Database module for SQLite persistence.

Provides:
- Database connection management
- Schema initialization
- Repository functions for curriculum, daily tasks, focus sessions,
  progress and the mirrored profile
"""

from neurostudy.db.database import get_db, init_db

__all__ = ["get_db", "init_db"]
