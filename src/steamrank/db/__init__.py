"""
Database module for SteamRank.

Provides SQLAlchemy ORM models and engine/session lifecycle helpers.

Usage:
    from steamrank.db import create_db_engine, create_session_factory, session_scope
"""

from steamrank.db.models import Base, Game, JudgmentLog, LadderEntry
from steamrank.db.session import create_db_engine, create_session_factory, session_scope

__all__ = [
    # Base
    "Base",
    # Models
    "Game",
    "LadderEntry",
    "JudgmentLog",
    # Session
    "create_db_engine",
    "create_session_factory",
    "session_scope",
]
