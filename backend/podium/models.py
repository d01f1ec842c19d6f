from podium import db, bcrypt
from podium.constants import GAME_TYPES
from podium.utils import utcnow
from flask_login import UserMixin
import json


def _load_json(raw, default):
    try:
        return json.loads(raw) if raw else default
    except (TypeError, ValueError):
        return default


class User(UserMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    email = db.Column(db.String(120), unique=True, nullable=True)
    password_hash = db.Column(db.String(256), nullable=False)
    preferred_difficulty = db.Column(db.String(32), default='beginner', nullable=False)
    # Rolling aggregates, mutated once per completed session
    total_games_played = db.Column(db.Integer, default=0, nullable=False)
    total_time_spent = db.Column(db.Integer, default=0, nullable=False)  # seconds
    average_score = db.Column(db.Float, default=0.0, nullable=False)
    average_confidence = db.Column(db.Float, default=0.0, nullable=False)
    best_scores_json = db.Column(db.Text, nullable=True)  # JSON-encoded {game_type: int}
    current_streak = db.Column(db.Integer, default=0, nullable=False)
    longest_streak = db.Column(db.Integer, default=0, nullable=False)
    last_played_on = db.Column(db.Date, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow)
    last_active = db.Column(db.DateTime, default=utcnow)

    achievements = db.relationship('Achievement', back_populates='user', order_by='Achievement.id',
                                   cascade='all, delete-orphan')
    sessions = db.relationship('GameSession', back_populates='user', lazy='dynamic',
                               cascade='all, delete-orphan')

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    @property
    def best_scores(self):
        scores = {game_type: 0 for game_type in GAME_TYPES}
        scores.update(_load_json(self.best_scores_json, {}))
        return scores

    @best_scores.setter
    def best_scores(self, value):
        self.best_scores_json = json.dumps(value)

    def achievement_types(self):
        return {a.achievement_type for a in self.achievements}

    def stats_dict(self):
        return {
            'total_games_played': self.total_games_played or 0,
            'total_time_spent': self.total_time_spent or 0,
            'average_score': self.average_score or 0,
            'best_scores': self.best_scores,
            'streaks': {
                'current': self.current_streak or 0,
                'longest': self.longest_streak or 0,
            },
            'average_confidence': self.average_confidence or 0,
        }

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'email': self.email,
            'preferred_difficulty': self.preferred_difficulty,
            'stats': self.stats_dict(),
            'achievements': [a.to_dict() for a in self.achievements],
        }


class Achievement(db.Model):
    __tablename__ = 'achievement'
    __table_args__ = (
        db.UniqueConstraint('user_id', 'achievement_type', name='uq_achievement_user_type'),
    )
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    achievement_type = db.Column(db.String(64), nullable=False)
    description = db.Column(db.String(256), nullable=True)
    unlocked_at = db.Column(db.DateTime, default=utcnow)
    user = db.relationship('User', back_populates='achievements')

    def to_dict(self):
        return {
            'type': self.achievement_type,
            'description': self.description,
            'unlocked_at': self.unlocked_at.isoformat() if self.unlocked_at else None,
        }


class GameSession(db.Model):
    __tablename__ = 'game_session'
    __table_args__ = (
        db.Index('ix_game_session_user_type', 'user_id', 'game_type'),
    )
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    game_type = db.Column(db.String(32), nullable=False)
    difficulty = db.Column(db.String(32), default='beginner', nullable=False)
    start_time = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    end_time = db.Column(db.DateTime, nullable=True)
    duration = db.Column(db.Integer, default=0, nullable=False)  # seconds
    # Performance, all 0-100 except the prompt counters
    score = db.Column(db.Integer, default=0, nullable=False)
    accuracy = db.Column(db.Integer, default=0, nullable=False)
    speed = db.Column(db.Integer, default=0, nullable=False)
    energy_consistency = db.Column(db.Integer, default=0, nullable=False)
    word_integration = db.Column(db.Integer, default=0, nullable=False)
    total_prompts = db.Column(db.Integer, default=0, nullable=False)
    completed_prompts = db.Column(db.Integer, default=0, nullable=False)
    game_specific_data = db.Column(db.Text, nullable=True)  # JSON-encoded {game_type: {...}}
    ai_analysis = db.Column(db.Text, nullable=True)  # JSON-encoded AIAnalysis
    is_completed = db.Column(db.Boolean, default=False, nullable=False)
    user = db.relationship('User', back_populates='sessions')

    def performance_dict(self):
        return {
            'score': self.score or 0,
            'accuracy': self.accuracy or 0,
            'speed': self.speed or 0,
            'energy_consistency': self.energy_consistency or 0,
            'word_integration': self.word_integration or 0,
            'total_prompts': self.total_prompts or 0,
            'completed_prompts': self.completed_prompts or 0,
        }

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'game_type': self.game_type,
            'session_data': {
                'start_time': self.start_time.isoformat() if self.start_time else None,
                'end_time': self.end_time.isoformat() if self.end_time else None,
                'duration': self.duration or 0,
                'difficulty': self.difficulty,
            },
            'performance': self.performance_dict(),
            'ai_analysis': _load_json(self.ai_analysis, None),
            'game_specific_data': _load_json(self.game_specific_data, {}),
            'is_completed': bool(self.is_completed),
        }
