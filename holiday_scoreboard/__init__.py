"""
Holiday Scoreboard - per-player scores for three mini-games and a ranked leaderboard.

This package provides:
- A roster store holding the whole player list as one document (SQLite or memory)
- A scoreboard engine ranking players by total score and editing the roster
- A JSON web interface for the score entry form and the leaderboard
- Configurable storage backend, game names and form size
"""

from .config import ScoreboardConfig
from .database import MemoryRosterStore, RosterStore, SQLiteRosterStore
from .engine import ScoreboardEngine, apply_edits, rank
from .errors import RevisionConflict, StorageUnavailable
from .web_handlers import WebHandlers
from .scoreboard import ScoreboardSystem

__version__ = "1.0.0"
__author__ = "Holiday Scoreboard Contributors"

__all__ = [
    "ScoreboardConfig",
    "RosterStore",
    "MemoryRosterStore",
    "SQLiteRosterStore",
    "ScoreboardEngine",
    "apply_edits",
    "rank",
    "RevisionConflict",
    "StorageUnavailable",
    "WebHandlers",
    "ScoreboardSystem",
]
