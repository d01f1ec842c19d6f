"""
Read-only analytics over a user's completed sessions.

Every method takes ``now`` from the injected clock, so results are
deterministic for a fixed clock and unchanged data. Windows are rolling:
``[now - days, now)``.
"""

import logging
import statistics
from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Callable, List, Optional

import sqlalchemy as sa

from podium import db
from podium.constants import GAME_TYPES, RAPID_FIRE, CONDUCTOR, TRIPLE_STEP, TIME_RANGE_DAYS, TIME_RANGES
from podium.errors import ValidationError, NotFoundError
from podium.models import User, GameSession
from podium.utils import mean, ratio_percent, round_half_up, utcnow
from podium.services.ai.feedback import FeedbackGenerator, default_insights

logger = logging.getLogger(__name__)

DEFAULT_RANGE = 'month'
NO_SESSIONS_MESSAGE = 'No recent sessions found. Start playing games to get insights!'
NO_SESSIONS_RECOMMENDATIONS = [
    'Try the Rapid Fire game to get started',
    'Practice regularly to see improvement trends',
]


def _scores(sessions) -> List[int]:
    return [s.score or 0 for s in sessions]


def _average_score(sessions) -> int:
    return round_half_up(mean(_scores(sessions))) if sessions else 0


def _best_score(sessions) -> int:
    return max(_scores(sessions)) if sessions else 0


def _total_time(sessions) -> int:
    return sum(s.duration or 0 for s in sessions)


def improvement(scores: List[int]) -> int:
    """Percent change from the first half's mean to the second half's.

    The first half is ``floor(n / 2)`` items. A zero first-half mean yields 0.
    """
    mid = len(scores) // 2
    if mid == 0:
        return 0
    first_avg = mean(scores[:mid])
    if first_avg == 0:
        return 0
    return round_half_up((mean(scores[mid:]) - first_avg) / first_avg * 100)


def percentage_change(current, previous) -> int:
    # Growth from a zero base is reported as 0
    if not previous:
        return 0
    return round_half_up((current - previous) / previous * 100)


def score_distribution(sessions) -> dict:
    buckets = OrderedDict((key, 0) for key in ('0-20', '21-40', '41-60', '61-80', '81-100'))
    for score in _scores(sessions):
        if score <= 20:
            buckets['0-20'] += 1
        elif score <= 40:
            buckets['21-40'] += 1
        elif score <= 60:
            buckets['41-60'] += 1
        elif score <= 80:
            buckets['61-80'] += 1
        else:
            buckets['81-100'] += 1
    return dict(buckets)


def consistency(sessions) -> int:
    if len(sessions) < 2:
        return 100
    deviation = statistics.pstdev(_scores(sessions))
    return max(0, round_half_up(100 - deviation / 2))


def _group_trend(sessions, key_name: str, key_of: Callable[[datetime], str]) -> List[dict]:
    groups = OrderedDict()
    for session in sessions:
        key = key_of(session.start_time)
        group = groups.setdefault(key, {'sessions': 0, 'total_score': 0, 'total_time': 0})
        group['sessions'] += 1
        group['total_score'] += session.score or 0
        group['total_time'] += session.duration or 0
    return [
        {
            key_name: key,
            'sessions': group['sessions'],
            'average_score': round_half_up(group['total_score'] / group['sessions']),
            'total_time': group['total_time'],
        }
        for key, group in groups.items()
    ]


def _day_key(moment: datetime) -> str:
    return moment.date().isoformat()


def _week_key(moment: datetime) -> str:
    day = moment.date()
    return (day - timedelta(days=day.weekday())).isoformat()


def _month_key(moment: datetime) -> str:
    return moment.strftime('%Y-%m')


def _period_metrics(sessions) -> dict:
    return {
        'sessions': len(sessions),
        'average_score': _average_score(sessions),
        'best_score': _best_score(sessions),
        'total_time': _total_time(sessions),
    }


def _change(metric: str, first: dict, second: dict) -> dict:
    return {
        'period1': first[metric],
        'period2': second[metric],
        'change': first[metric] - second[metric],
        'percentage_change': percentage_change(first[metric], second[metric]),
    }


class ProgressAnalyticsEngine:

    def __init__(self, feedback: Optional[FeedbackGenerator] = None, now: Callable[[], datetime] = utcnow,
                 insights_limit: int = 20):
        self.feedback = feedback
        self.now = now
        self.insights_limit = insights_limit

    # -- helpers -------------------------------------------------------

    def _user(self, user_id: int) -> User:
        user = db.session.get(User, user_id)
        if user is None:
            raise NotFoundError('User not found')
        return user

    def _completed(self, user_id: int, since: Optional[datetime] = None, until: Optional[datetime] = None,
                   game_type: Optional[str] = None, newest_first: bool = False, limit: Optional[int] = None):
        query = GameSession.query.filter(
            GameSession.user_id == user_id,
            GameSession.is_completed.is_(True),
        )
        if since is not None:
            query = query.filter(GameSession.start_time >= since)
        if until is not None:
            query = query.filter(GameSession.start_time < until)
        if game_type:
            query = query.filter(GameSession.game_type == game_type)
        if newest_first:
            query = query.order_by(GameSession.start_time.desc(), GameSession.id.desc())
        else:
            query = query.order_by(GameSession.start_time.asc(), GameSession.id.asc())
        if limit:
            query = query.limit(limit)
        return query.all()

    def _since(self, now: datetime, time_range: str) -> Optional[datetime]:
        days = TIME_RANGE_DAYS.get(time_range)
        return now - timedelta(days=days) if days else None

    @staticmethod
    def _lenient_range(time_range: Optional[str]) -> str:
        return time_range if time_range in TIME_RANGES else DEFAULT_RANGE

    @staticmethod
    def _strict_range(time_range: Optional[str], allowed=TIME_RANGES) -> str:
        if time_range not in allowed:
            raise ValidationError(f"Invalid time range: {time_range!r}")
        return time_range

    @staticmethod
    def _game_type(game_type: Optional[str]) -> Optional[str]:
        if not game_type:
            return None
        if game_type not in GAME_TYPES:
            raise ValidationError(f"Invalid game type: {game_type!r}")
        return game_type

    # -- operations ----------------------------------------------------

    def overview(self, user_id: int, time_range: Optional[str] = DEFAULT_RANGE) -> dict:
        now = self.now()
        time_range = self._lenient_range(time_range)
        user = self._user(user_id)
        sessions = self._completed(user_id, since=self._since(now, time_range))

        scores = _scores(sessions)
        game_type_progress = {}
        for game_type in GAME_TYPES:
            typed = [s for s in sessions if s.game_type == game_type]
            if not typed:
                continue
            typed_scores = _scores(typed)
            game_type_progress[game_type] = {
                'sessions': len(typed),
                'average_score': _average_score(typed),
                'best_score': max(typed_scores),
                'improvement': improvement(typed_scores) if len(typed) >= 2 else 0,
            }

        weekly_trends = []
        for i in range(3, -1, -1):
            week_start = now - timedelta(days=i * 7 + 7)
            week_end = now - timedelta(days=i * 7)
            week = [s for s in sessions if week_start <= s.start_time < week_end]
            weekly_trends.append({
                'week': f"Week {4 - i}",
                'sessions': len(week),
                'average_score': _average_score(week),
                'total_time': _total_time(week),
            })

        return {
            'time_range': time_range,
            'total_sessions': len(sessions),
            'total_time': _total_time(sessions),
            'average_score': _average_score(sessions),
            'best_score': _best_score(sessions),
            'improvement': improvement(scores) if len(sessions) >= 4 else 0,
            'game_type_progress': game_type_progress,
            'weekly_trends': weekly_trends,
            'achievements': [a.to_dict() for a in user.achievements],
        }

    def analytics(self, user_id: int, game_type: Optional[str] = None,
                  time_range: Optional[str] = DEFAULT_RANGE) -> dict:
        game_type = self._game_type(game_type)
        time_range = self._strict_range(time_range or DEFAULT_RANGE)
        now = self.now()
        sessions = self._completed(user_id, since=self._since(now, time_range), game_type=game_type)
        durations = [s.duration or 0 for s in sessions]

        return {
            'game_type': game_type or 'all',
            'time_range': time_range,
            'total_sessions': len(sessions),
            'performance_metrics': {
                'average_score': _average_score(sessions),
                'best_score': _best_score(sessions),
                'worst_score': min(_scores(sessions)) if sessions else 0,
                'score_distribution': score_distribution(sessions),
                'consistency': consistency(sessions),
            },
            'time_metrics': {
                'total_time': sum(durations),
                'average_session_length': round_half_up(mean(durations)) if durations else 0,
                'longest_session': max(durations) if durations else 0,
                'shortest_session': min(durations) if durations else 0,
            },
            'trends': {
                'daily': _group_trend(sessions, 'date', _day_key),
                'weekly': _group_trend(sessions, 'week', _week_key),
                'monthly': _group_trend(sessions, 'month', _month_key),
            },
            'game_specific_metrics': self._game_specific_metrics(sessions, game_type) if game_type else None,
        }

    @staticmethod
    def _game_specific_metrics(sessions, game_type: str) -> Optional[dict]:
        typed = [s for s in sessions if s.game_type == game_type]
        if not typed:
            return None
        metrics = _period_metrics(typed)
        if game_type == RAPID_FIRE:
            metrics['response_rate'] = ratio_percent(
                sum(s.completed_prompts or 0 for s in typed),
                sum(s.total_prompts or 0 for s in typed),
            )
        elif game_type == CONDUCTOR:
            metrics['energy_consistency'] = round_half_up(mean(s.energy_consistency or 0 for s in typed))
        elif game_type == TRIPLE_STEP:
            metrics['word_integration'] = round_half_up(mean(s.word_integration or 0 for s in typed))
        return metrics

    def compare(self, user_id: int, period1: str, period2: str, game_type: Optional[str] = None) -> dict:
        """Compare ``[now - period1, now)`` against the window just before it, ``[now - period2, now - period1)``."""
        period1 = self._strict_range(period1, allowed=tuple(TIME_RANGE_DAYS))
        period2 = self._strict_range(period2, allowed=tuple(TIME_RANGE_DAYS))
        game_type = self._game_type(game_type)
        now = self.now()
        period1_start = self._since(now, period1)
        period2_start = self._since(now, period2)

        first = _period_metrics(self._completed(user_id, since=period1_start, until=now, game_type=game_type))
        second = _period_metrics(self._completed(user_id, since=period2_start, until=period1_start,
                                                 game_type=game_type))
        return {
            'period1': {'name': period1, 'metrics': first},
            'period2': {'name': period2, 'metrics': second},
            'changes': {metric: _change(metric, first, second)
                        for metric in ('sessions', 'average_score', 'total_time')},
            'game_type': game_type or 'all',
        }

    def insights(self, user_id: int, time_range: Optional[str] = DEFAULT_RANGE) -> dict:
        now = self.now()
        time_range = self._lenient_range(time_range)
        user = self._user(user_id)
        sessions = self._completed(user_id, since=self._since(now, time_range),
                                   newest_first=True, limit=self.insights_limit)
        if not sessions:
            return {'message': NO_SESSIONS_MESSAGE, 'recommendations': list(NO_SESSIONS_RECOMMENDATIONS)}

        total_time = _total_time(sessions)
        average_score = _average_score(sessions)
        best_score = _best_score(sessions)
        recent = {
            'score': average_score,
            'accuracy': round_half_up(mean(s.accuracy or 0 for s in sessions)),
            'speed': round_half_up(mean(s.speed or 0 for s in sessions)),
            'session_duration': round_half_up(total_time / len(sessions)),
        }
        user_stats = dict(user.stats_dict(), best_score=best_score)
        difficulty = user.preferred_difficulty or 'beginner'

        if self.feedback is None:
            insights = default_insights('general', difficulty)
        else:
            insights = self.feedback.generate(user_stats, 'general', recent, difficulty)

        result = insights.to_dict()
        result['metrics'] = {
            'total_sessions': len(sessions),
            'average_score': average_score,
            'best_score': best_score,
            'total_time': round_half_up(total_time / 60),  # minutes
        }
        return result

    def stats(self, user_id: int, game_type: Optional[str] = None, time_range: Optional[str] = 'all') -> dict:
        game_type = self._game_type(game_type)
        time_range = self._strict_range(time_range or 'all')
        user = self._user(user_id)
        sessions = self._completed(user_id, since=self._since(self.now(), time_range),
                                   game_type=game_type, newest_first=True)

        breakdown = {}
        for each in GAME_TYPES:
            typed = [s for s in sessions if s.game_type == each]
            breakdown[each] = _period_metrics(typed)

        result = user.stats_dict()
        result.update(
            time_range=time_range,
            total_sessions=len(sessions),
            total_time=_total_time(sessions),
            session_average_score=_average_score(sessions),
            best_score=_best_score(sessions),
            game_type_breakdown=breakdown,
            recent_performance=[
                {
                    'game_type': s.game_type,
                    'score': s.score or 0,
                    'date': s.start_time.isoformat() if s.start_time else None,
                    'duration': s.duration or 0,
                }
                for s in sessions[:10]
            ],
            achievements=[a.to_dict() for a in user.achievements],
        )
        return result

    def achievements(self, user_id: int) -> dict:
        user = self._user(user_id)
        return {
            'achievements': [a.to_dict() for a in user.achievements],
            'stats': user.stats_dict(),
        }

    def leaderboard(self, game_type: Optional[str], limit: int = 10) -> List[dict]:
        if not game_type:
            raise ValidationError('Game type is required')
        game_type = self._game_type(game_type)
        limit = max(1, min(100, int(limit)))

        best = sa.func.max(GameSession.score).label('best_score')
        rows = (
            db.session.query(
                User.id,
                User.username,
                best,
                sa.func.count(GameSession.id).label('total_sessions'),
                sa.func.avg(GameSession.score).label('average_score'),
            )
            .join(GameSession, GameSession.user_id == User.id)
            .filter(GameSession.game_type == game_type, GameSession.is_completed.is_(True))
            .group_by(User.id, User.username)
            .order_by(best.desc(), User.id.asc())
            .limit(limit)
            .all()
        )
        return [
            {
                'user_id': row.id,
                'username': row.username,
                'best_score': row.best_score or 0,
                'total_sessions': row.total_sessions,
                'average_score': round_half_up(float(row.average_score or 0) * 10) / 10,
            }
            for row in rows
        ]
