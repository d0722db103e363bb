from bowldem import db
from bowldem.services.daily.ranking import LeaderboardEntry
from datetime import datetime, timezone
import json


def _utcnow():
    return datetime.now(timezone.utc)


class LeaderboardSubmission(db.Model):
    __tablename__ = 'leaderboard_submission'
    __table_args__ = (
        db.UniqueConstraint('identity', 'puzzle_date', name='uq_submission_identity_date'),
        db.Index('ix_submission_scope', 'scope_key', 'puzzle_date', 'won', 'guesses_used', 'submitted_at'),
    )
    id = db.Column(db.Integer, primary_key=True)
    identity = db.Column(db.String(64), nullable=False, index=True)
    display_name = db.Column(db.String(64), nullable=True)
    puzzle_date = db.Column(db.String(10), nullable=False, index=True)  # YYYY-MM-DD
    puzzle_number = db.Column(db.Integer, nullable=True)
    guesses_used = db.Column(db.Integer, nullable=False)
    won = db.Column(db.Boolean, nullable=False, default=False)
    scope_key = db.Column(db.String(64), nullable=True)  # e.g. community/server id
    is_seed = db.Column(db.Boolean, nullable=False, default=False)
    submitted_at = db.Column(db.DateTime, nullable=False, default=_utcnow)

    def to_entry(self):
        return LeaderboardEntry(
            identity=self.identity,
            puzzle_date=self.puzzle_date,
            guesses_used=self.guesses_used,
            won=bool(self.won),
            submitted_at=self.submitted_at,
            scope_key=self.scope_key,
            display_name=self.display_name,
            puzzle_number=self.puzzle_number,
            is_seed=bool(self.is_seed),
        )


class SavedState(db.Model):
    """One persisted value (game slot, stats, ...) for one player."""
    __tablename__ = 'saved_state'
    __table_args__ = (
        db.UniqueConstraint('owner', 'key', name='uq_saved_state_owner_key'),
    )
    id = db.Column(db.Integer, primary_key=True)
    owner = db.Column(db.String(64), nullable=False, index=True)
    key = db.Column(db.String(64), nullable=False)
    payload = db.Column(db.Text, nullable=False)  # JSON-encoded value
    updated_at = db.Column(db.DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    @property
    def value(self):
        return json.loads(self.payload)

    @value.setter
    def value(self, data):
        self.payload = json.dumps(data)
