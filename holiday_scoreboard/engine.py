"""
Scoreboard computation and roster mutations.

The module-level functions are pure. ScoreboardEngine runs every mutation as
one load -> apply -> conditional replace cycle against a RosterStore.
"""

import re
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    List,
    Mapping,
    NamedTuple,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from .database import RosterStore
from .errors import RevisionConflict, StorageUnavailable
from .models import (
    AddResult,
    EditingView,
    EditRow,
    EmptyScoreboard,
    Player,
    RankedEntry,
    RemoveOutcome,
    RemoveResult,
    SaveResult,
    default_player_name,
    new_player_id,
    parse_score,
)

DEFAULT_ROWS = 30
DEFAULT_MAX_RETRIES = 3

RawEdits = Union[Mapping[int, Sequence[Any]], Iterable[Sequence[Any]]]
Ranking = Union[List[RankedEntry], EmptyScoreboard]

_FORM_FIELD = re.compile(r"^(name|toss|plinko|fluff|id)-(\d+)$")

__all__ = [
    "DEFAULT_ROWS",
    "ScoreboardEngine",
    "apply_edits",
    "default_roster",
    "edits_from_form",
    "editing_rows",
    "parse_score",
    "rank",
]


def rank(
    players: List[Player],
) -> Ranking:
    """
    Rank players by the sum of their three scores, highest first.

    Equal totals keep their roster order and still get consecutive ranks.

    @param players: Roster in stored order
    @return: Ranked entries, or EmptyScoreboard for an empty roster
    """
    if not players:
        return EmptyScoreboard()

    # sorted() is stable with reverse=True as well
    ordered = sorted(players, key=lambda player: player.total, reverse=True)

    return [
        RankedEntry(
            rank=position,
            name=player.name,
            toss=player.toss,
            plinko=player.plinko,
            fluff=player.fluff,
            total=player.total,
        )
        for position, player in enumerate(ordered, 1)
    ]


def default_roster(
    count: int = DEFAULT_ROWS,
) -> List[EditRow]:
    """Placeholder rows "Player 1".."Player N" with blank scores."""
    return [EditRow(index=i, name=default_player_name(i)) for i in range(count)]


def editing_rows(
    players: List[Player],
    minimum: int = DEFAULT_ROWS,
) -> List[EditRow]:
    """
    Turn the roster into form rows, padded with placeholders.

    @param players: Stored roster
    @param minimum: Smallest number of rows to return
    @return: One row per player followed by placeholder rows up to minimum
    """
    rows = [
        EditRow(
            index=i,
            name=player.name,
            toss=player.toss,
            plinko=player.plinko,
            fluff=player.fluff,
            player_id=player.player_id,
        )
        for i, player in enumerate(players)
    ]
    rows.extend(
        EditRow(index=i, name=default_player_name(i))
        for i in range(len(rows), minimum)
    )
    return rows


def _sorted_edits(
    edits: RawEdits,
) -> List[Tuple[int, Tuple[Any, ...]]]:
    if isinstance(edits, Mapping):
        collected = {int(index): tuple(fields) for index, fields in edits.items()}
    else:
        collected = {}
        for row in edits:
            collected[int(row[0])] = tuple(row[1:])

    return sorted(collected.items())


def apply_edits(
    edits: RawEdits,
) -> List[Player]:
    """
    Build a new roster from the rows of the editing form.

    Rows are taken in ascending index order, whatever order they arrive in
    and however sparse the indices are. Names are trimmed and rows without a
    name are dropped. Scores go through parse_score, so nothing here raises
    on bad input.

    @param edits: (index, name, toss, plinko, fluff[, id]) tuples, or a
        mapping of index to (name, toss, plinko, fluff[, id])
    @return: The roster to store
    """
    roster = []
    seen_ids = set()

    for _, fields in _sorted_edits(edits):
        name, toss, plinko, fluff, player_id = (fields + (None,) * 5)[:5]

        name = str(name or "").strip()
        if not name:
            continue

        if not player_id or player_id in seen_ids:
            player_id = new_player_id()
        seen_ids.add(player_id)

        roster.append(
            Player(
                name=name,
                toss=parse_score(toss),
                plinko=parse_score(plinko),
                fluff=parse_score(fluff),
                player_id=str(player_id),
            )
        )

    return roster


def edits_from_form(
    form: Mapping[str, Any],
) -> Dict[int, Tuple[Any, ...]]:
    """
    Collect edit rows from flat form fields such as "name-3" and "toss-3".

    @param form: Submitted form fields
    @return: Mapping of row index to (name, toss, plinko, fluff, id)
    """
    indices = set()
    for key in form.keys():
        match = _FORM_FIELD.match(key)
        if match:
            indices.add(int(match.group(2)))

    return {
        index: (
            form.get(f"name-{index}", ""),
            form.get(f"toss-{index}"),
            form.get(f"plinko-{index}"),
            form.get(f"fluff-{index}"),
            form.get(f"id-{index}"),
        )
        for index in sorted(indices)
    }


class Transaction(NamedTuple):
    """
    Outcome of one load -> apply -> replace cycle.

    previous is None when the load failed; roster is None when the apply
    function declined to write.
    """

    previous: Optional[List[Player]]
    roster: Optional[List[Player]]
    written: bool


class ScoreboardEngine:
    """Roster operations invoked by the user interface."""

    def __init__(
        self,
        store: RosterStore,
        default_rows: int = DEFAULT_ROWS,
        max_retries: int = DEFAULT_MAX_RETRIES,
    ) -> None:
        self.store = store
        self.default_rows = default_rows
        self.max_retries = max_retries

    async def load_editing_view(self) -> EditingView:
        """
        Load the roster as form rows along with the revision they came from.

        Passing the revision back to save_edits makes the save fail instead of
        overwriting changes made after the form was loaded.

        @return: EditingView with padded rows and the stored revision
        @raise StorageUnavailable: If the store cannot be read
        """
        document = await self.store.load_document()
        return EditingView(
            rows=editing_rows(document.players, self.default_rows),
            revision=document.revision,
        )

    async def load_roster_for_editing(self) -> List[EditRow]:
        """
        Load the roster as form rows, padded to the default row count.

        @return: Editable rows
        @raise StorageUnavailable: If the store cannot be read
        """
        view = await self.load_editing_view()
        return view.rows

    async def get_ranked_scoreboard(self) -> Ranking:
        """
        Load the roster and rank it.

        @return: Ranked entries, or EmptyScoreboard if nothing is stored
        @raise StorageUnavailable: If the store cannot be read
        """
        players = await self.store.load()
        return rank(players)

    async def transact(
        self,
        apply: Callable[[List[Player]], Optional[List[Player]]],
    ) -> Transaction:
        """
        Run apply against the stored roster and write its result conditionally.

        When another writer got in between the load and the replace, the
        cycle starts over from a fresh load, up to max_retries times.

        @param apply: Receives a copy of the stored roster, returns the new
            roster or None to leave the store untouched
        @return: Transaction describing what happened
        """
        previous: Optional[List[Player]] = None
        roster: Optional[List[Player]] = None

        for attempt in range(1, self.max_retries + 1):
            try:
                document = await self.store.load_document()
            except StorageUnavailable as e:
                print(f"Could not load roster: {e}")
                return Transaction(None, None, False)

            previous = document.players
            roster = apply(list(previous))
            if roster is None:
                return Transaction(previous, None, False)

            try:
                written = await self.store.replace(
                    roster, expected_revision=document.revision
                )
            except RevisionConflict as e:
                print(
                    f"Roster changed during update "
                    f"(attempt {attempt}/{self.max_retries}): {e}"
                )
                continue

            return Transaction(previous, roster, written)

        print("Roster update abandoned after repeated conflicts")
        return Transaction(previous, roster, False)

    async def save_edits(
        self,
        edits: RawEdits,
        base_revision: Optional[int] = None,
    ) -> SaveResult:
        """
        Replace the stored roster with the edited rows.

        With base_revision, the write only happens if the roster is still at
        the revision the form was loaded from; otherwise the result reports a
        conflict and nothing is written. Without it the form replaces whatever
        is stored.

        @param edits: Raw form rows, see apply_edits
        @param base_revision: Revision returned by load_editing_view
        @return: SaveResult with the stored roster on success
        """
        new_roster = apply_edits(edits)

        if base_revision is None:
            transaction = await self.transact(lambda _: list(new_roster))
            if not transaction.written:
                return SaveResult(success=False)
            return SaveResult(success=True, roster=transaction.roster)

        try:
            written = await self.store.replace(
                new_roster, expected_revision=base_revision
            )
        except RevisionConflict as e:
            print(f"Roster changed since the form was loaded: {e}")
            return SaveResult(success=False, conflict=True)

        if not written:
            return SaveResult(success=False)
        return SaveResult(success=True, roster=new_roster)

    async def add_player(self) -> AddResult:
        """Append "Player N+1" with zero scores."""

        def append_player(players: List[Player]) -> List[Player]:
            players.append(Player(name=default_player_name(len(players))))
            return players

        transaction = await self.transact(append_player)

        if not transaction.written:
            return AddResult(success=False)
        return AddResult(success=True, added_name=transaction.roster[-1].name)

    async def remove_player(self) -> RemoveResult:
        """
        Remove the last player of the roster.

        An empty roster is reported as NOTHING_TO_REMOVE and nothing is written.
        """

        def drop_last(players: List[Player]) -> Optional[List[Player]]:
            if not players:
                return None
            return players[:-1]

        transaction = await self.transact(drop_last)

        if transaction.previous is None:
            return RemoveResult(RemoveOutcome.FAILED)
        if transaction.roster is None:
            return RemoveResult(RemoveOutcome.NOTHING_TO_REMOVE)
        if not transaction.written:
            return RemoveResult(RemoveOutcome.FAILED)

        return RemoveResult(
            RemoveOutcome.REMOVED, removed_name=transaction.previous[-1].name
        )
