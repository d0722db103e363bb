"""Guess scoring.

Pure functions: the same candidate and puzzle always produce the same
feedback, whether scored here or by the remote validation authority.
"""
from dataclasses import dataclass
from typing import Union

from .errors import UnknownCandidate
from .selector import Candidate, Catalog, Puzzle


@dataclass(frozen=True)
class FeedbackRecord:
    candidate_id: str
    played_in_match: bool
    same_team_as_target: bool
    same_role_as_target: bool
    is_target: bool

    def to_dict(self):
        return {
            'candidate_id': self.candidate_id,
            'attributes': {
                'played_in_match': self.played_in_match,
                'same_team_as_target': self.same_team_as_target,
                'same_role_as_target': self.same_role_as_target,
                'is_target': self.is_target,
            },
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'FeedbackRecord':
        attrs = data['attributes']
        return cls(
            candidate_id=str(data['candidate_id']),
            played_in_match=bool(attrs['played_in_match']),
            same_team_as_target=bool(attrs['same_team_as_target']),
            same_role_as_target=bool(attrs['same_role_as_target']),
            is_target=bool(attrs['is_target']),
        )


@dataclass(frozen=True)
class Rejection:
    """A guess that was refused without consuming an attempt."""
    candidate_id: str
    reason: str  # unknown_candidate | duplicate_guess | unavailable_date

    def to_dict(self):
        return {'candidate_id': self.candidate_id, 'rejected': True, 'reason': self.reason}


def score_guess(candidate: Candidate, puzzle: Puzzle) -> FeedbackRecord:
    is_target = candidate.id == puzzle.target_identity
    # The target matches itself on every attribute even if roster data drifts
    return FeedbackRecord(
        candidate_id=candidate.id,
        played_in_match=is_target or candidate.id in puzzle.participants,
        same_team_as_target=is_target or candidate.team == puzzle.target_team,
        same_role_as_target=is_target or candidate.role == puzzle.target_role,
        is_target=is_target,
    )


def score_candidate(candidate_id: str, catalog: Catalog, puzzle: Puzzle) -> Union[FeedbackRecord, Rejection]:
    """Score a guess by id. Unknown ids come back as a ``Rejection``."""
    try:
        candidate = catalog.candidate(candidate_id)
    except UnknownCandidate:
        return Rejection(candidate_id=candidate_id, reason='unknown_candidate')
    return score_guess(candidate, puzzle)
