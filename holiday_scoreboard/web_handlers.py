"""
Web route handlers for the holiday scoreboard JSON API.
"""

import json
from typing import Any, Dict, List, Optional, Tuple

from aiohttp import web

from .engine import ScoreboardEngine, default_roster, edits_from_form
from .errors import StorageUnavailable
from .models import EmptyScoreboard, RemoveOutcome

LOAD_ERROR = "Error loading scores from server."
SAVE_ERROR = "Error saving scores to server."
CONFLICT_ERROR = "Scores were changed by someone else. Reload before saving."


class BadRequest(Exception):
    """The request body could not be read as an edit set."""


def rows_to_edits(
    rows: Any,
) -> List[Tuple[Any, ...]]:
    """
    Convert JSON rows into edit tuples.

    @param rows: List of {"index", "name", "toss", "plinko", "fluff", "id"} objects
    @return: (index, name, toss, plinko, fluff, id) tuples
    @raise BadRequest: If rows is not a list of objects with integer indices
    """
    if not isinstance(rows, list):
        raise BadRequest("'rows' must be a list")

    edits = []
    for position, row in enumerate(rows):
        if not isinstance(row, dict):
            raise BadRequest(f"Row {position} must be an object")

        index = row.get("index", position)
        if isinstance(index, bool):
            raise BadRequest(f"Row {position} has an invalid index")
        try:
            index = int(index)
        except (TypeError, ValueError, OverflowError):
            raise BadRequest(f"Row {position} has an invalid index")

        edits.append(
            (
                index,
                row.get("name"),
                row.get("toss"),
                row.get("plinko"),
                row.get("fluff"),
                row.get("id"),
            )
        )
    return edits


def parse_revision(
    raw: Any,
) -> Optional[int]:
    """
    Read the revision a form was loaded at.

    @param raw: Value from a JSON body or the "revision" form field, None if absent
    @return: The revision, or None when none was sent
    @raise BadRequest: If the value is not a non-negative integer
    """
    if raw is None or raw == "":
        return None
    if isinstance(raw, bool) or isinstance(raw, float):
        raise BadRequest("'revision' must be an integer")
    try:
        revision = int(raw)
    except (TypeError, ValueError):
        raise BadRequest("'revision' must be an integer")
    if revision < 0:
        raise BadRequest("'revision' must not be negative")
    return revision


def edits_to_rows(
    edits: List[Tuple[Any, ...]],
) -> List[Dict[str, Any]]:
    """Echo submitted edits back in row form, unparsed."""
    return [
        {
            "index": index,
            "name": name,
            "toss": toss,
            "plinko": plinko,
            "fluff": fluff,
            "id": player_id,
        }
        for index, name, toss, plinko, fluff, player_id in edits
    ]


class WebHandlers:
    """Handles web routes and responses."""

    def __init__(
        self,
        engine: ScoreboardEngine,
        config: Any,
    ) -> None:
        self.engine = engine
        self.config = config

    async def _read_edits(
        self,
        request: web.Request,
    ) -> Tuple[List[Tuple[Any, ...]], Optional[int]]:
        """
        Read the edit set from a JSON body or from form fields.

        @param request: HTTP request carrying the edited rows
        @return: Edit tuples in submitted order and the revision the form was
            loaded at (None if the client did not send one)
        """
        if request.content_type == "application/json":
            try:
                data = await request.json()
            except json.JSONDecodeError:
                raise BadRequest("Request body is not valid JSON")
            if not isinstance(data, dict):
                raise BadRequest("Request body must be an object")
            edits = rows_to_edits(data.get("rows"))
            return edits, parse_revision(data.get("revision"))

        form = await request.post()
        edits = [(index,) + fields for index, fields in edits_from_form(form).items()]
        return edits, parse_revision(form.get("revision"))

    async def api_roster(
        self,
        _: web.Request,
    ) -> web.Response:
        """
        Rows for the editing form.

        A storage failure still yields placeholder rows, with an error message.

        @param _: Unused request parameter
        @return: JSON response with rows, games and the roster revision
        """
        payload: Dict[str, Any] = {"games": self.config.games()}

        try:
            view = await self.engine.load_editing_view()
            rows = view.rows
            payload["revision"] = view.revision
        except StorageUnavailable as e:
            print(f"Error fetching roster: {e}")
            rows = default_roster(self.engine.default_rows)
            payload["revision"] = None
            payload["error"] = LOAD_ERROR

        payload["rows"] = [row.to_dict() for row in rows]
        return web.json_response(payload)

    async def api_save_roster(
        self,
        request: web.Request,
    ) -> web.Response:
        """
        Save the edited rows as the new roster.

        @param request: HTTP request with a JSON {"rows": [...], "revision": n} body
            or form fields
        @return: JSON response with the stored players; 409 echoing the rows when
            the roster changed since it was loaded, 503 echoing them on failure
        """
        try:
            edits, revision = await self._read_edits(request)
        except BadRequest as e:
            return web.json_response({"success": False, "error": str(e)}, status=400)

        result = await self.engine.save_edits(edits, base_revision=revision)

        if result.conflict:
            return web.json_response(
                {
                    "success": False,
                    "conflict": True,
                    "error": CONFLICT_ERROR,
                    "rows": edits_to_rows(edits),
                },
                status=409,
            )
        if not result.success:
            return web.json_response(
                {"success": False, "error": SAVE_ERROR, "rows": edits_to_rows(edits)},
                status=503,
            )

        return web.json_response(
            {"success": True, "players": [p.to_dict() for p in result.roster]}
        )

    async def api_add_player(
        self,
        _: web.Request,
    ) -> web.Response:
        result = await self.engine.add_player()

        if not result.success:
            return web.json_response(
                {"success": False, "error": SAVE_ERROR}, status=503
            )
        return web.json_response({"success": True, "added": result.added_name})

    async def api_remove_player(
        self,
        _: web.Request,
    ) -> web.Response:
        """
        Remove the last player.

        @param _: Unused request parameter
        @return: JSON response naming the removed player; 409 when the roster is empty
        """
        result = await self.engine.remove_player()

        if result.outcome is RemoveOutcome.NOTHING_TO_REMOVE:
            return web.json_response(
                {
                    "success": False,
                    "nothing_to_remove": True,
                    "error": "Cannot remove. The player list is empty.",
                },
                status=409,
            )
        if not result.success:
            return web.json_response(
                {"success": False, "error": SAVE_ERROR}, status=503
            )

        return web.json_response({"success": True, "removed": result.removed_name})

    async def api_scoreboard(
        self,
        _: web.Request,
    ) -> web.Response:
        """
        Ranked scoreboard.

        @param _: Unused request parameter
        @return: JSON response with entries, or a placeholder message when empty
        """
        try:
            ranking = await self.engine.get_ranked_scoreboard()
        except StorageUnavailable as e:
            print(f"Error fetching scoreboard: {e}")
            payload = EmptyScoreboard().to_dict()
            payload["error"] = LOAD_ERROR
            return web.json_response(payload)

        if isinstance(ranking, EmptyScoreboard):
            return web.json_response(ranking.to_dict())

        return web.json_response({"entries": [entry.to_dict() for entry in ranking]})

    async def api_config(
        self,
        _: web.Request,
    ) -> web.Response:
        return web.json_response(self.config.public_config())
