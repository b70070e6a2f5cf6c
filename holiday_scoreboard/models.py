"""
Data types shared by the roster store, the scoreboard engine and the web layer.
"""

import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import uuid4

# Score fields in display order, with the names shown to players.
GAMES = (
    ("toss", "Snowball Toss"),
    ("plinko", "North Pole Plinko"),
    ("fluff", "Reindeer Fluff Roundup"),
)
SCORE_FIELDS = tuple(key for key, _ in GAMES)

EMPTY_SCOREBOARD_MESSAGE = (
    "No scores saved yet. Please enter scores on the input screen."
)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def new_player_id() -> str:
    return uuid4().hex


def default_player_name(
    position: int,
) -> str:
    """
    Name given to a player slot that has not been renamed.

    @param position: Zero-based position of the slot in the roster
    @return: "Player N" with N counted from one
    """
    return f"Player {position + 1}"


def parse_score(
    raw: Any,
) -> int:
    """
    Coerce a raw score into a non-negative integer.

    Text is read by its leading integer ("12abc" is 12, "3.7" is 3). Blank,
    unparseable and missing values become 0, negatives are clamped to 0.

    @param raw: Value as received from a form, a JSON body or a stored document
    @return: Parsed score
    """
    if raw is None or isinstance(raw, bool):
        return 0
    if isinstance(raw, int):
        return max(raw, 0)
    if isinstance(raw, float):
        if not math.isfinite(raw):
            return 0
        return max(int(raw), 0)

    match = _LEADING_INT.match(str(raw))
    if not match:
        return 0
    return max(int(match.group(1)), 0)


@dataclass
class Player:
    """One competitor and their raw score in each mini-game."""

    name: str
    toss: int = 0
    plinko: int = 0
    fluff: int = 0
    # Identity is not part of equality: rosters compare by names and scores.
    player_id: str = field(default_factory=new_player_id, compare=False)

    @property
    def total(self) -> int:
        return self.toss + self.plinko + self.fluff

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.player_id,
            "name": self.name,
            "toss": self.toss,
            "plinko": self.plinko,
            "fluff": self.fluff,
        }

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
    ) -> Optional["Player"]:
        """
        Build a player from a stored document entry.

        @param data: Dictionary as written by to_dict (older entries may lack an id)
        @return: Player, or None when the entry has no usable name
        """
        name = str(data.get("name") or "").strip()
        if not name:
            return None

        player_id = data.get("id")
        return cls(
            name=name,
            toss=parse_score(data.get("toss")),
            plinko=parse_score(data.get("plinko")),
            fluff=parse_score(data.get("fluff")),
            player_id=str(player_id) if player_id else new_player_id(),
        )


@dataclass
class EditRow:
    """
    A row of the editing form.

    Scores are None while blank, which is not the same as an entered 0.
    """

    index: int
    name: str
    toss: Optional[int] = None
    plinko: Optional[int] = None
    fluff: Optional[int] = None
    player_id: Optional[str] = None

    @property
    def is_placeholder(self) -> bool:
        return self.player_id is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "id": self.player_id,
            "name": self.name,
            "toss": self.toss,
            "plinko": self.plinko,
            "fluff": self.fluff,
        }


@dataclass
class RankedEntry:
    rank: int
    name: str
    toss: int
    plinko: int
    fluff: int
    total: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rank": self.rank,
            "name": self.name,
            "toss": self.toss,
            "plinko": self.plinko,
            "fluff": self.fluff,
            "total": self.total,
        }


@dataclass
class EmptyScoreboard:
    """Returned instead of an empty ranking so callers can show a placeholder."""

    message: str = EMPTY_SCOREBOARD_MESSAGE

    def to_dict(self) -> Dict[str, Any]:
        return {"entries": [], "placeholder": self.message}


@dataclass
class RosterDocument:
    """The stored roster together with its revision token (0 when nothing is stored)."""

    players: List[Player] = field(default_factory=list)
    revision: int = 0


@dataclass
class EditingView:
    """Form rows together with the revision they were loaded at."""

    rows: List[EditRow]
    revision: int = 0


@dataclass
class SaveResult:
    success: bool
    roster: List[Player] = field(default_factory=list)
    # The roster changed since the form was loaded; nothing was written
    conflict: bool = False


@dataclass
class AddResult:
    success: bool
    added_name: Optional[str] = None


class RemoveOutcome(Enum):
    REMOVED = "removed"
    NOTHING_TO_REMOVE = "nothing_to_remove"
    FAILED = "failed"


@dataclass
class RemoveResult:
    outcome: RemoveOutcome
    removed_name: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.outcome is RemoveOutcome.REMOVED

    @property
    def nothing_to_remove(self) -> bool:
        return self.outcome is RemoveOutcome.NOTHING_TO_REMOVE
