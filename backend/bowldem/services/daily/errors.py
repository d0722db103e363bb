class BowldemError(Exception):
    """Base class for daily puzzle errors."""


class CatalogEmpty(BowldemError):
    """No puzzles are available; the game cannot start."""


class UnknownCandidate(BowldemError):
    def __init__(self, candidate_id):
        super().__init__(f"Unknown candidate: {candidate_id!r}")
        self.candidate_id = candidate_id


class DuplicateSubmission(BowldemError):
    def __init__(self, identity, puzzle_date):
        super().__init__(f"{identity} already submitted for {puzzle_date}")
        self.identity = identity
        self.puzzle_date = puzzle_date


class ValidationUnavailable(BowldemError):
    """The remote validation authority could not produce a result."""


class PersistenceUnavailable(BowldemError):
    """The player's state store cannot be read or written."""
