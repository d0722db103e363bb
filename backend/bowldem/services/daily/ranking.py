"""Leaderboard ordering, rank, percentile and cross-puzzle totals.

``rank_entries`` is the only ordering used for rank display, top N and
the window around a player. Everything here is a pure function over
``LeaderboardEntry`` values.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Tuple

DEFAULT_TOP_N = 5


@dataclass(frozen=True)
class LeaderboardEntry:
    identity: str
    puzzle_date: str
    guesses_used: int
    won: bool
    submitted_at: datetime
    scope_key: Optional[str] = None
    display_name: Optional[str] = None
    puzzle_number: Optional[int] = None
    is_seed: bool = False

    def to_dict(self):
        return {
            'identity': self.identity,
            'display_name': self.display_name or self.identity,
            'puzzle_date': self.puzzle_date,
            'puzzle_number': self.puzzle_number,
            'guesses_used': self.guesses_used,
            'won': self.won,
            'submitted_at': _utc(self.submitted_at).isoformat(),
            'scope_key': self.scope_key,
        }


@dataclass(frozen=True)
class IdentityAggregate:
    identity: str
    display_name: Optional[str]
    games_played: int
    total_wins: int
    total_guesses: int
    average_guesses: float

    def to_dict(self):
        return {
            'identity': self.identity,
            'display_name': self.display_name or self.identity,
            'games_played': self.games_played,
            'total_wins': self.total_wins,
            'total_guesses': self.total_guesses,
            'average_guesses': round(self.average_guesses, 2),
        }


def _utc(ts: datetime) -> datetime:
    # SQLite hands back naive datetimes; they are stored as UTC
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def _in_scope(entry: LeaderboardEntry, scope_key: Optional[str]) -> bool:
    return scope_key is None or entry.scope_key == scope_key


def rank_entries(entries: Iterable[LeaderboardEntry], scope_key: Optional[str] = None) -> List[LeaderboardEntry]:
    """Winners only, fewest guesses first, earlier submission first on ties."""
    ranked = [e for e in entries if e.won and _in_scope(e, scope_key)]
    ranked.sort(key=lambda e: (e.guesses_used, _utc(e.submitted_at)))
    return ranked


def rank_of(identity: str, ranked: List[LeaderboardEntry]) -> Optional[int]:
    for position, entry in enumerate(ranked, start=1):
        if entry.identity == identity:
            return position
    return None


def percentile(guesses_used: int, won: bool, entries: List[LeaderboardEntry]) -> int:
    """Share of results that did no better than this one, 0..100.

    Any win beats any loss; among wins fewer guesses is better. An empty
    leaderboard yields 0, callers must check for that case themselves.
    """
    total = len(entries)
    if not total:
        return 0
    better = 0
    for entry in entries:
        if entry.won and not won:
            better += 1
        elif entry.won and won and entry.guesses_used < guesses_used:
            better += 1
    return int((total - better) / total * 100 + 0.5)


def top_entries(ranked: List[LeaderboardEntry], n: int = DEFAULT_TOP_N) -> List[LeaderboardEntry]:
    return ranked[:max(0, n)]


def surrounding(ranked: List[LeaderboardEntry], identity: str, radius: int = 2) -> List[Tuple[int, LeaderboardEntry]]:
    """(rank, entry) pairs within ``radius`` places of the player, inclusive."""
    position = rank_of(identity, ranked)
    if position is None:
        return []
    start = max(1, position - radius)
    stop = min(len(ranked), position + radius)
    return [(rank, ranked[rank - 1]) for rank in range(start, stop + 1)]


def aggregate_by_identity(entries: Iterable[LeaderboardEntry], zero_win_average: float,
                          scope_key: Optional[str] = None) -> List[IdentityAggregate]:
    """Per-identity totals, most wins first, then lowest average guesses.

    Identities without a win get ``zero_win_average`` as their average so
    they never sort above a winner.
    """
    groups = {}
    for entry in entries:
        if entry.is_seed or not _in_scope(entry, scope_key):
            continue
        row = groups.setdefault(entry.identity, {'name': entry.display_name, 'played': 0, 'wins': 0, 'guesses': 0})
        if row['name'] is None:
            row['name'] = entry.display_name
        row['played'] += 1
        if entry.won:
            row['wins'] += 1
            row['guesses'] += entry.guesses_used

    aggregates = [
        IdentityAggregate(
            identity=identity,
            display_name=row['name'],
            games_played=row['played'],
            total_wins=row['wins'],
            total_guesses=row['guesses'],
            average_guesses=(row['guesses'] / row['wins']) if row['wins'] else float(zero_win_average),
        )
        for identity, row in groups.items()
    ]
    aggregates.sort(key=lambda a: (-a.total_wins, a.average_guesses, a.identity))
    return aggregates
