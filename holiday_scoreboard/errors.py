"""
Exceptions raised by the roster store.
"""


class ScoreboardError(Exception):
    """Base class for scoreboard errors."""


class StorageUnavailable(ScoreboardError):
    """The backend could not be reached or returned an unreadable document."""


class RevisionConflict(ScoreboardError):
    """A conditional replace found a newer document than the one it was based on."""

    def __init__(
        self,
        expected: int,
        actual: int,
    ) -> None:
        super().__init__(f"Expected revision {expected}, found {actual}")
        self.expected = expected
        self.actual = actual
