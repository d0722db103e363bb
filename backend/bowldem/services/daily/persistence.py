"""Player state stores.

A store keeps one player's game slots, stats, archive results and debug
offset under namespaced keys. Missing or corrupt data loads as defaults.
If the backing storage fails the store drops to an in-memory copy for
the rest of the session instead of raising.
"""
import copy
import json
import logging
import os
import tempfile
from dataclasses import replace
from pathlib import Path
from typing import Dict, Iterable, Optional

from .errors import PersistenceUnavailable
from .state import LOST, GameState
from .stats import Stats, empty_stats

log = logging.getLogger(__name__)

DEFAULT_MAX_GUESSES = 5

STATS_KEY = 'stats'
DEBUG_OFFSET_KEY = 'debug_offset'
ARCHIVE_KEY = 'archive_completed'


def state_key(slot_key: str) -> str:
    return f"state:{slot_key}"


class StateStore:
    """Base store; subclasses provide ``_read``, ``_write`` and ``_delete``."""

    def __init__(self, max_guesses: int = DEFAULT_MAX_GUESSES):
        self.max_guesses = max_guesses
        self._fallback: Optional[Dict[str, object]] = None

    # -- backend hooks --------------------------------------------------

    def _read(self, key: str):
        raise NotImplementedError

    def _write(self, values: Dict[str, object]) -> None:
        """Write every key in ``values`` in one step."""
        raise NotImplementedError

    def _delete(self, keys: Iterable[str]) -> None:
        raise NotImplementedError

    def _keys(self) -> Iterable[str]:
        raise NotImplementedError

    # -- degraded mode --------------------------------------------------

    @property
    def degraded(self) -> bool:
        return self._fallback is not None

    def _degrade(self, exc: Exception) -> None:
        if self._fallback is None:
            log.warning(f"[store-degraded] store={type(self).__name__} error={exc}")
            self._fallback = {}

    def _get(self, key: str):
        if self._fallback is None:
            try:
                return self._read(key)
            except PersistenceUnavailable as exc:
                self._degrade(exc)
        return copy.deepcopy(self._fallback.get(key))

    def _put(self, values: Dict[str, object]) -> None:
        if self._fallback is None:
            try:
                self._write(values)
                return
            except PersistenceUnavailable as exc:
                self._degrade(exc)
        self._fallback.update(copy.deepcopy(values))

    # -- game state -----------------------------------------------------

    def load_game_state(self, slot_key: str) -> GameState:
        raw = self._get(state_key(slot_key))
        if raw is None:
            return GameState(slot_key=slot_key)
        try:
            if not isinstance(raw, dict):
                raise TypeError(f"expected an object, got {type(raw).__name__}")
            state = GameState.from_dict(raw)
        except (KeyError, TypeError, ValueError) as exc:
            log.warning(f"[store-corrupt] key={state_key(slot_key)} error={exc}")
            return GameState(slot_key=slot_key)
        if state.slot_key != slot_key or len(state.attempts) > self.max_guesses:
            log.warning(f"[store-corrupt] key={state_key(slot_key)} stored slot={state.slot_key} attempts={len(state.attempts)}")
            return GameState(slot_key=slot_key)
        if not state.is_terminal and len(state.attempts) >= self.max_guesses:
            # Every attempt used without a win: the game is over
            log.warning(f"[store-exhausted] key={state_key(slot_key)} attempts={len(state.attempts)}")
            return replace(state, status=LOST)
        return state

    def save_game_state(self, slot_key: str, state: GameState) -> None:
        self._put({state_key(slot_key): state.to_dict()})

    # -- stats ----------------------------------------------------------

    def load_stats(self) -> Stats:
        raw = self._get(STATS_KEY)
        if raw is None:
            return empty_stats(self.max_guesses)
        try:
            if not isinstance(raw, dict):
                raise TypeError(f"expected an object, got {type(raw).__name__}")
            stats = Stats.from_dict(raw)
        except (KeyError, TypeError, ValueError) as exc:
            log.warning(f"[store-corrupt] key={STATS_KEY} error={exc}")
            return empty_stats(self.max_guesses)
        if len(stats.guess_distribution) < self.max_guesses:
            padding = (0,) * (self.max_guesses - len(stats.guess_distribution))
            stats = replace(stats, guess_distribution=stats.guess_distribution + padding)
        return stats

    def save_stats(self, stats: Stats) -> None:
        self._put({STATS_KEY: stats.to_dict()})

    def commit(self, slot_key: str, state: GameState, stats: Optional[Stats] = None) -> None:
        """Save a game state, and the stats it produced, as one write."""
        values = {state_key(slot_key): state.to_dict()}
        if stats is not None:
            values[STATS_KEY] = stats.to_dict()
        self._put(values)

    # -- debug offset & archive ----------------------------------------

    def load_debug_offset(self) -> int:
        raw = self._get(DEBUG_OFFSET_KEY)
        try:
            return int(raw or 0)
        except (TypeError, ValueError):
            return 0

    def save_debug_offset(self, offset: int) -> None:
        self._put({DEBUG_OFFSET_KEY: int(offset)})

    def load_archive_completed(self) -> Dict[str, str]:
        raw = self._get(ARCHIVE_KEY)
        if not isinstance(raw, dict):
            return {}
        return {str(k): str(v) for k, v in raw.items()}

    def save_archive_completion(self, puzzle_date: str, result: str) -> None:
        completed = self.load_archive_completed()
        completed[puzzle_date] = result
        self._put({ARCHIVE_KEY: completed})

    def clear(self) -> None:
        if self._fallback is not None:
            self._fallback.clear()
            return
        try:
            self._delete(list(self._keys()))
        except PersistenceUnavailable as exc:
            self._degrade(exc)


class MemoryStore(StateStore):
    """Process-local store. Values are JSON round-tripped like a real backend."""

    def __init__(self, max_guesses: int = DEFAULT_MAX_GUESSES):
        super().__init__(max_guesses)
        self.data: Dict[str, str] = {}

    def _read(self, key):
        raw = self.data.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            log.warning(f"[store-corrupt] key={key} error={exc}")
            return None

    def _write(self, values):
        for key, value in values.items():
            self.data[key] = json.dumps(value)

    def _delete(self, keys):
        for key in keys:
            self.data.pop(key, None)

    def _keys(self):
        return list(self.data)


class JsonFileStore(StateStore):
    """Single JSON document on disk, replaced atomically on every write."""

    def __init__(self, path, max_guesses: int = DEFAULT_MAX_GUESSES):
        super().__init__(max_guesses)
        self.path = Path(path)

    def _load_document(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            with self.path.open('r', encoding='utf-8') as f:
                data = json.load(f)
        except ValueError as exc:
            # Undecodable state should never stop play
            log.warning(f"[store-corrupt] path={self.path} error={exc}")
            return {}
        except OSError as exc:
            raise PersistenceUnavailable(str(exc)) from exc
        return data if isinstance(data, dict) else {}

    def _save_document(self, document: dict) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), prefix=self.path.name, suffix='.tmp')
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    json.dump(document, f, indent=2)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as exc:
            raise PersistenceUnavailable(str(exc)) from exc

    def _read(self, key):
        return self._load_document().get(key)

    def _write(self, values):
        document = self._load_document()
        document.update(values)
        self._save_document(document)

    def _delete(self, keys):
        document = self._load_document()
        for key in keys:
            document.pop(key, None)
        self._save_document(document)

    def _keys(self):
        return list(self._load_document())
