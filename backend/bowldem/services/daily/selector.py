"""Puzzle catalog loading and cyclic selection."""
import json
import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from .calendar import DateLike, date_for_puzzle_index, puzzle_index_for_date
from .errors import CatalogEmpty, UnknownCandidate

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Candidate:
    id: str
    full_name: str
    team: str
    role: str

    def to_dict(self):
        return {'id': self.id, 'full_name': self.full_name, 'team': self.team, 'role': self.role}


@dataclass(frozen=True)
class Puzzle:
    id: str
    puzzle_index: int
    match_context: dict
    venue: str
    scorecard: dict
    participants: frozenset
    target_identity: str
    target_team: str
    target_role: str
    candidate_pool: Optional[Tuple[str, ...]] = None

    def to_public_dict(self):
        # Never includes the answer or the participant list
        return {
            'id': self.id,
            'puzzle_index': self.puzzle_index,
            'match_context': self.match_context,
            'venue': self.venue,
            'scorecard': self.scorecard,
            'candidate_pool': list(self.candidate_pool) if self.candidate_pool else None,
        }


@dataclass
class Catalog:
    puzzles: List[Puzzle]
    candidates: Dict[str, Candidate] = field(default_factory=dict)

    def __len__(self):
        return len(self.puzzles)

    def candidate(self, candidate_id: str) -> Candidate:
        try:
            return self.candidates[candidate_id]
        except KeyError:
            raise UnknownCandidate(candidate_id) from None

    def puzzle_by_id(self, puzzle_id: str) -> Optional[Puzzle]:
        for puzzle in self.puzzles:
            if puzzle.id == puzzle_id:
                return puzzle
        return None


def _puzzle_from_dict(index: int, raw: dict) -> Puzzle:
    target = raw.get('target') or {}
    pool = raw.get('candidate_pool')
    return Puzzle(
        id=str(raw['id']),
        puzzle_index=index,
        match_context=raw.get('match_context') or {},
        venue=raw.get('venue', ''),
        scorecard=raw.get('scorecard') or {},
        participants=frozenset(raw.get('participants') or ()) | {target['identity']},
        target_identity=target['identity'],
        target_team=target['team'],
        target_role=target['role'],
        candidate_pool=tuple(pool) if pool else None,
    )


def load_catalog(puzzles_path, players_path) -> Catalog:
    """Load the ordered puzzle list and the candidate roster from JSON files."""
    with Path(puzzles_path).open('r', encoding='utf-8') as f:
        raw_puzzles = json.load(f).get('puzzles', [])
    with Path(players_path).open('r', encoding='utf-8') as f:
        raw_players = json.load(f).get('players', [])
    puzzles = [_puzzle_from_dict(i, p) for i, p in enumerate(raw_puzzles)]
    candidates = {}
    for p in raw_players:
        c = Candidate(id=str(p['id']), full_name=p.get('full_name', p['id']), team=p['team'], role=p['role'])
        candidates[c.id] = c
    log.info(f"[catalog] loaded puzzles={len(puzzles)} candidates={len(candidates)}")
    return Catalog(puzzles=puzzles, candidates=candidates)


def select_puzzle(puzzle_index: int, catalog: Sequence) -> Tuple[Puzzle, int]:
    """Return ``(puzzle, wrapped_index)``; the catalog repeats once exhausted."""
    puzzles = catalog.puzzles if isinstance(catalog, Catalog) else catalog
    if not puzzles:
        raise CatalogEmpty('The puzzle catalog is empty')
    wrapped = puzzle_index % len(puzzles)
    return puzzles[wrapped], wrapped


@dataclass(frozen=True)
class ArchiveDay:
    puzzle_date: date
    puzzle_number: int
    result: Optional[str] = None

    def to_dict(self):
        return {
            'puzzle_date': self.puzzle_date.isoformat(),
            'puzzle_number': self.puzzle_number,
            'result': self.result,
        }


def archive_listing(today: DateLike, epoch: DateLike, completed: Optional[Dict[str, str]] = None) -> List[ArchiveDay]:
    """Every puzzle day from the epoch up to, but not including, today. Newest first."""
    completed = completed or {}
    last = puzzle_index_for_date(today, epoch)
    days = []
    for number in range(last - 1, -1, -1):
        day = date_for_puzzle_index(number, epoch)
        days.append(ArchiveDay(puzzle_date=day, puzzle_number=number, result=completed.get(day.isoformat())))
    return days
