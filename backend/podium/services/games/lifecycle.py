"""
Session lifecycle: open a session, close it exactly once, attach AI enrichment.

``SessionStore.end`` is the only writer of a session's terminal state. The
completion is a conditional UPDATE guarded by ``is_completed = false`` so
that of two concurrent end calls only one sees a matched row; the loser gets
``AlreadyCompletedError`` and never touches user stats. Stats and
achievements are applied inside a SAVEPOINT of the same transaction, so a
failure there rolls back alone and the completion still commits. AI
enrichment runs after the commit.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional

import sqlalchemy as sa
from sqlalchemy.exc import SQLAlchemyError

from podium import db
from podium.constants import GAME_TYPES, DIFFICULTIES
from podium.errors import ValidationError, NotFoundError, AlreadyCompletedError, StatsUpdateError
from podium.models import User, Achievement, GameSession
from podium.services.ai.orchestrator import AIAnalysis, AIAnalysisOrchestrator, default_analysis
from podium.utils import round_half_up, utcnow
from . import scoring
from .stats import update_stats, check_achievements
from .variants import parse_game_specific, dump_game_specific

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    'start_time': GameSession.start_time,
    'score': GameSession.score,
    'duration': GameSession.duration,
}


@dataclass
class FinalizedSession:
    session: GameSession
    ai_analysis: AIAnalysis
    new_achievements: List[Achievement] = field(default_factory=list)

    def to_dict(self):
        return {
            'session': self.session.to_dict(),
            'ai_analysis': self.ai_analysis.to_dict(),
            'new_achievements': [a.to_dict() for a in self.new_achievements],
        }


def validate_game_type(game_type, allow_none=False) -> Optional[str]:
    if game_type is None and allow_none:
        return None
    if game_type not in GAME_TYPES:
        raise ValidationError(f"Invalid game type: {game_type!r}")
    return game_type


class SessionStore:

    def __init__(self, orchestrator: Optional[AIAnalysisOrchestrator] = None,
                 clock: Callable[[], datetime] = utcnow):
        self.orchestrator = orchestrator
        self.clock = clock

    def start(self, user_id: int, game_type: str, difficulty: Optional[str] = None) -> GameSession:
        validate_game_type(game_type)
        difficulty = difficulty or 'beginner'
        if difficulty not in DIFFICULTIES:
            raise ValidationError(f"Invalid difficulty: {difficulty!r}")
        session = GameSession(
            user_id=user_id,
            game_type=game_type,
            difficulty=difficulty,
            start_time=self.clock(),
            is_completed=False,
        )
        db.session.add(session)
        db.session.commit()
        logger.debug(f"[start_session] session={session.id} user={user_id} game_type={game_type}")
        return session

    def get(self, user_id: int, session_id: int) -> GameSession:
        session = GameSession.query.filter_by(id=session_id, user_id=user_id).first()
        if session is None:
            raise NotFoundError('Game session not found')
        return session

    def list_for_user(self, user_id: int, game_type: Optional[str] = None, page: int = 1, limit: int = 20,
                      sort_by: str = 'start_time', sort_order: str = 'desc'):
        """Return ``(sessions, pagination)`` for one user, newest first by default."""
        validate_game_type(game_type, allow_none=True)
        column = SORT_COLUMNS.get(sort_by)
        if column is None:
            raise ValidationError(f"Invalid sort field: {sort_by!r}")
        if sort_order not in ('asc', 'desc'):
            raise ValidationError(f"Invalid sort order: {sort_order!r}")
        page = max(1, int(page))
        limit = max(1, min(100, int(limit)))

        query = GameSession.query.filter_by(user_id=user_id)
        if game_type:
            query = query.filter_by(game_type=game_type)
        ordering = column.desc() if sort_order == 'desc' else column.asc()
        total = query.count()
        sessions = query.order_by(ordering, GameSession.id.desc()).offset((page - 1) * limit).limit(limit).all()
        return sessions, {
            'page': page,
            'limit': limit,
            'total': total,
            'pages': (total + limit - 1) // limit,
        }

    def end(self, user_id: int, session_id: int, raw_performance: Optional[dict],
            raw_game_specific_data: Optional[dict]) -> FinalizedSession:
        session = self.get(user_id, session_id)
        if session.is_completed:
            raise AlreadyCompletedError('Game session already completed')

        game_data = parse_game_specific(session.game_type, raw_game_specific_data)
        performance = scoring.compute(session.game_type, raw_performance, game_data)
        end_time = max(self.clock(), session.start_time)
        duration = max(0, round_half_up((end_time - session.start_time).total_seconds()))

        values = performance.to_dict()
        values.update(
            end_time=end_time,
            duration=duration,
            game_specific_data=json.dumps(dump_game_specific(game_data)),
            is_completed=True,
        )
        result = db.session.execute(
            sa.update(GameSession)
            .where(
                GameSession.id == session_id,
                GameSession.user_id == user_id,
                GameSession.is_completed.is_(False),
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            db.session.rollback()
            raise AlreadyCompletedError('Game session already completed')
        db.session.refresh(session)

        new_achievements = self._apply_stats(user_id, session, end_time)
        db.session.commit()
        logger.debug(f"[end_session] committed session={session_id} user={user_id} score={performance.score} "
                     f"duration={duration}s")

        analysis = self._enrich(session.game_type, game_data)
        self.attach_analysis(session_id, analysis)
        return FinalizedSession(session=session, ai_analysis=analysis, new_achievements=new_achievements)

    def _apply_stats(self, user_id: int, session: GameSession, end_time: datetime) -> List[Achievement]:
        try:
            with db.session.begin_nested():
                user = db.session.get(User, user_id)
                if user is None:
                    raise NotFoundError(f"user {user_id} not found")
                update_stats(user, session.game_type, session.score, session.duration, end_time.date())
                return check_achievements(user, session)
        except Exception as exc:
            error = StatsUpdateError(f"stats update failed for session {session.id}: {exc}")
            logger.error(f"[stats] {error.message}", exc_info=True)
            return []

    def _enrich(self, game_type: str, game_data) -> AIAnalysis:
        if self.orchestrator is None:
            return default_analysis()
        return self.orchestrator.analyze(game_type, game_data)

    def attach_analysis(self, session_id: int, analysis: AIAnalysis) -> None:
        try:
            db.session.execute(
                sa.update(GameSession)
                .where(GameSession.id == session_id)
                .values(ai_analysis=json.dumps(analysis.to_dict()))
                .execution_options(synchronize_session=False)
            )
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception(f"[ai] could not attach analysis to session={session_id}")
            return
        session = db.session.get(GameSession, session_id)
        if session is not None:
            db.session.refresh(session)

    def delete_for_user(self, user_id: int) -> int:
        deleted = GameSession.query.filter_by(user_id=user_id).delete(synchronize_session=False)
        logger.info(f"[delete_sessions] user={user_id} removed={deleted}")
        return deleted
