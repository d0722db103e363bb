"""Play/win counters and streaks for today's puzzle."""
import logging
from dataclasses import dataclass, field, replace
from datetime import timedelta
from typing import Optional, Tuple

from .calendar import DateLike, to_utc_date

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Stats:
    games_played: int = 0
    games_won: int = 0
    current_streak: int = 0
    max_streak: int = 0
    guess_distribution: Tuple[int, ...] = field(default_factory=tuple)
    last_win_date: Optional[str] = None
    # Puzzle date of the last today game folded into these numbers
    last_recorded_date: Optional[str] = None

    @property
    def win_percentage(self) -> int:
        if self.games_played <= 0:
            return 0
        return int(self.games_won / self.games_played * 100 + 0.5)

    def to_dict(self):
        return {
            'games_played': self.games_played,
            'games_won': self.games_won,
            'current_streak': self.current_streak,
            'max_streak': self.max_streak,
            'guess_distribution': list(self.guess_distribution),
            'last_win_date': self.last_win_date,
            'last_recorded_date': self.last_recorded_date,
            'win_percentage': self.win_percentage,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Stats':
        distribution = data.get('guess_distribution') or []
        if not isinstance(distribution, list):
            raise ValueError('guess_distribution must be a list')
        return cls(
            games_played=int(data.get('games_played', 0)),
            games_won=int(data.get('games_won', 0)),
            current_streak=int(data.get('current_streak', 0)),
            max_streak=int(data.get('max_streak', 0)),
            guess_distribution=tuple(int(n) for n in distribution),
            last_win_date=data.get('last_win_date'),
            last_recorded_date=data.get('last_recorded_date'),
        )


def empty_stats(max_guesses: int) -> Stats:
    return Stats(guess_distribution=(0,) * max_guesses)


def record_result(stats: Stats, won: bool, attempts_used: int, puzzle_date: DateLike) -> Stats:
    """Fold one finished today game into the stats.

    Recording the same puzzle date twice is a no-op, so a crash between
    the game transition and the stats write can be repaired by replaying.
    """
    today = to_utc_date(puzzle_date)
    today_str = today.isoformat()
    if stats.last_recorded_date == today_str:
        log.info(f"[stats-skip] date={today_str} already recorded")
        return stats

    played = stats.games_played + 1
    if not won:
        return replace(stats, games_played=played, current_streak=0, last_recorded_date=today_str)

    distribution = list(stats.guess_distribution)
    slot = attempts_used - 1
    if slot >= len(distribution):
        distribution.extend([0] * (slot + 1 - len(distribution)))
    distribution[slot] += 1

    yesterday_str = (today - timedelta(days=1)).isoformat()
    if stats.last_win_date == yesterday_str:
        streak = stats.current_streak + 1
    elif stats.last_win_date != today_str:
        streak = 1
    else:
        streak = stats.current_streak

    return replace(
        stats,
        games_played=played,
        games_won=stats.games_won + 1,
        guess_distribution=tuple(distribution),
        current_streak=streak,
        max_streak=max(stats.max_streak, streak),
        last_win_date=today_str,
        last_recorded_date=today_str,
    )
