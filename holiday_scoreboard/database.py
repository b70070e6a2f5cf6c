"""
Roster storage backends.

Every backend keeps one document, {"players": [...]}, that is always read and
written as a whole. Each successful write bumps an integer revision so writers
can make their replace conditional on the document they loaded.
"""

import json
from typing import Any, List, Optional

import aiosqlite

from .errors import RevisionConflict, StorageUnavailable
from .models import Player, RosterDocument


def encode_document(
    players: List[Player],
) -> str:
    return json.dumps({"players": [player.to_dict() for player in players]})


def decode_document(
    body: str,
) -> List[Player]:
    """
    Parse a stored document body.

    Entries that are not objects or have no name are skipped.

    @param body: JSON text of the document
    @return: List of players in stored order
    @raise ValueError: If the body is not a roster document
    """
    data = json.loads(body)
    if not isinstance(data, dict):
        raise ValueError("Roster document must be a JSON object")

    entries = data.get("players") or []
    if not isinstance(entries, list):
        raise ValueError("Roster document 'players' must be a list")

    players = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        player = Player.from_dict(entry)
        if player is not None:
            players.append(player)
    return players


class RosterStore:
    """Whole-document load and replace of the roster."""

    async def init(self) -> None:
        """Prepare the backend. Nothing to do by default."""

    async def close(self) -> None:
        """Release backend resources. Nothing to do by default."""

    async def load_document(self) -> RosterDocument:
        """
        Load the roster and its revision.

        @return: Stored document, or an empty document at revision 0 if none exists
        @raise StorageUnavailable: If the backend cannot be read
        """
        raise NotImplementedError

    async def load(self) -> List[Player]:
        """
        Load the persisted roster.

        @return: List of players, empty if nothing has been saved yet
        @raise StorageUnavailable: If the backend cannot be read
        """
        document = await self.load_document()
        return document.players

    async def replace(
        self,
        players: List[Player],
        expected_revision: Optional[int] = None,
    ) -> bool:
        """
        Overwrite the whole roster in a single write.

        @param players: The complete new roster
        @param expected_revision: Only write if the stored revision still matches
        @return: True if written, False on backend error
        @raise RevisionConflict: If expected_revision no longer matches
        """
        raise NotImplementedError


class MemoryRosterStore(RosterStore):
    """
    Roster kept in process memory.

    fail_loads and fail_writes make the store behave like an unreachable backend.
    """

    def __init__(
        self,
        players: Optional[List[Player]] = None,
    ) -> None:
        self._body: Optional[str] = None
        self._revision = 0
        self.fail_loads = False
        self.fail_writes = False
        self.write_count = 0

        if players is not None:
            self._body = encode_document(players)
            self._revision = 1

    @property
    def revision(self) -> int:
        return self._revision

    async def load_document(self) -> RosterDocument:
        if self.fail_loads:
            raise StorageUnavailable("In-memory store is marked unavailable")
        if self._body is None:
            return RosterDocument()
        return RosterDocument(decode_document(self._body), self._revision)

    async def replace(
        self,
        players: List[Player],
        expected_revision: Optional[int] = None,
    ) -> bool:
        if self.fail_writes:
            print("Error saving roster: in-memory store is marked unavailable")
            return False
        if expected_revision is not None and expected_revision != self._revision:
            raise RevisionConflict(expected_revision, self._revision)

        self._body = encode_document(players)
        self._revision += 1
        self.write_count += 1
        return True


class SQLiteRosterStore(RosterStore):
    """Roster document kept in a SQLite table, one row per document key."""

    def __init__(
        self,
        db_path: str,
        document_key: str = "scoreboard",
    ) -> None:
        self.db_path = db_path
        self.document_key = document_key

    async def init(self) -> None:
        """
        Create the documents table.

        @raise StorageUnavailable: If the database cannot be opened
        """
        try:
            async with aiosqlite.connect(self.db_path) as db:
                # WAL lets the scoreboard be read while a save is in progress
                await db.execute("PRAGMA journal_mode=WAL")
                await db.execute("""
                    CREATE TABLE IF NOT EXISTS documents (
                        key TEXT PRIMARY KEY,
                        body TEXT NOT NULL,
                        revision INTEGER NOT NULL DEFAULT 0,
                        updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
                    )
                """)
                await db.commit()
        except (aiosqlite.Error, OSError) as e:
            print(f"Error initializing database {self.db_path}: {e}")
            raise StorageUnavailable(str(e)) from e

    async def load_document(self) -> RosterDocument:
        try:
            async with aiosqlite.connect(self.db_path) as db:
                cursor = await db.execute(
                    "SELECT body, revision FROM documents WHERE key = ?",
                    (self.document_key,),
                )
                row = await cursor.fetchone()
        except (aiosqlite.Error, OSError) as e:
            print(f"Error loading roster from {self.db_path}: {e}")
            raise StorageUnavailable(str(e)) from e

        if row is None:
            print("No scoreboard data found, starting fresh.")
            return RosterDocument()

        body, revision = row
        try:
            players = decode_document(body)
        except ValueError as e:
            print(f"Stored roster '{self.document_key}' is unreadable: {e}")
            raise StorageUnavailable(f"Corrupt roster document: {e}") from e

        return RosterDocument(players, revision)

    async def replace(
        self,
        players: List[Player],
        expected_revision: Optional[int] = None,
    ) -> bool:
        body = encode_document(players)

        try:
            async with aiosqlite.connect(self.db_path, isolation_level=None) as db:
                # Take the write lock before reading the revision
                await db.execute("BEGIN IMMEDIATE")
                cursor = await db.execute(
                    "SELECT revision FROM documents WHERE key = ?",
                    (self.document_key,),
                )
                row = await cursor.fetchone()
                current = row[0] if row else 0

                if expected_revision is not None and expected_revision != current:
                    await db.rollback()
                    raise RevisionConflict(expected_revision, current)

                if row is None:
                    await db.execute(
                        "INSERT INTO documents (key, body, revision) VALUES (?, ?, ?)",
                        (self.document_key, body, current + 1),
                    )
                else:
                    await db.execute(
                        "UPDATE documents SET body = ?, revision = ?, "
                        "updated_at = CURRENT_TIMESTAMP WHERE key = ?",
                        (body, current + 1, self.document_key),
                    )
                await db.commit()
        except (aiosqlite.Error, OSError) as e:
            print(f"Error saving roster to {self.db_path}: {e}")
            return False

        print(f"Saved {len(players)} players (revision {current + 1})")
        return True


def create_store(
    config: Any,
) -> RosterStore:
    """
    Build the roster store selected in the configuration.

    @param config: ScoreboardConfig instance
    @return: Memory store for the "memory" backend, SQLite store otherwise
    """
    if config.get("storage", "backend") == "memory":
        return MemoryRosterStore()

    return SQLiteRosterStore(
        str(config.get("storage", "db_path")),
        str(config.get("storage", "document_key")),
    )
