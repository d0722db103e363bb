"""Two-tier guess validation.

The remote authority is tried first when one is configured. Any failure
to get a usable answer from it falls back to local scoring, and the
result records which side produced it.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Union

import requests

from .errors import ValidationUnavailable
from .scoring import FeedbackRecord, Rejection, score_candidate
from .selector import Catalog, Puzzle

log = logging.getLogger(__name__)

SOURCE_REMOTE = 'remote'
SOURCE_LOCAL = 'local'


@dataclass(frozen=True)
class ValidationResult:
    source: str
    feedback: FeedbackRecord

    def to_dict(self):
        return {'source': self.source, 'feedback': self.feedback.to_dict()}


class RemoteValidator:
    """Client for ``POST {base_url}/api/puzzles/<puzzle_id>/validate``."""

    def __init__(self, base_url: str, timeout: float = 3.0, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()

    def validate_guess(self, puzzle_id: str, candidate_id: str) -> FeedbackRecord:
        url = f"{self.base_url}/api/puzzles/{puzzle_id}/validate"
        try:
            resp = self.session.post(url, json={'candidate_id': candidate_id}, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as exc:
            raise ValidationUnavailable(f"validation request failed: {exc}") from exc
        if not isinstance(data, dict) or data.get('error'):
            raise ValidationUnavailable(f"validation error: {data!r}")
        try:
            feedback = FeedbackRecord.from_dict(data)
        except (KeyError, TypeError) as exc:
            raise ValidationUnavailable(f"malformed feedback: {exc}") from exc
        if feedback.candidate_id != candidate_id:
            raise ValidationUnavailable(f"feedback for {feedback.candidate_id!r}, asked about {candidate_id!r}")
        return feedback


class GuessValidator:
    def __init__(self, catalog: Catalog, remote=None):
        self.catalog = catalog
        self.remote = remote

    def validate(self, puzzle: Puzzle, candidate_id: str) -> Union[ValidationResult, Rejection]:
        local = score_candidate(candidate_id, self.catalog, puzzle)
        if isinstance(local, Rejection):
            # Unknown locally means unknown everywhere; don't spend a network call
            return local
        if self.remote is not None:
            try:
                feedback = self.remote.validate_guess(puzzle.id, candidate_id)
                return ValidationResult(source=SOURCE_REMOTE, feedback=feedback)
            except ValidationUnavailable as exc:
                log.warning(f"[fallback] puzzle={puzzle.id} candidate={candidate_id} reason={exc}")
        return ValidationResult(source=SOURCE_LOCAL, feedback=local)
