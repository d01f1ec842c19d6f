import logging
from datetime import date, timedelta
from typing import List, Optional

from podium import db
from podium.constants import ACHIEVEMENTS, RAPID_FIRE, CONDUCTOR, TRIPLE_STEP
from podium.models import User, Achievement, GameSession
from podium.utils import utcnow

logger = logging.getLogger(__name__)

STREAK_THRESHOLDS = ((5, 'streak_5'), (10, 'streak_10'))


def _advance_streak(user: User, played_on: date) -> None:
    last = user.last_played_on
    current = user.current_streak or 0
    if last == played_on:
        current = max(current, 1)
    elif last is not None and last == played_on - timedelta(days=1):
        current += 1
    elif last is None or played_on > last:
        current = 1
    # A session dated before last_played_on leaves the streak alone
    user.current_streak = current
    user.longest_streak = max(user.longest_streak or 0, current)
    if last is None or played_on > last:
        user.last_played_on = played_on


def update_stats(user: User, game_type: str, score: int, duration: int, played_on: Optional[date] = None) -> None:
    """Fold one completed session into the user's rolling aggregates.

    average_score is the mean of the per-game-type best scores (all three
    game types, unplayed ones count as 0), not the mean of every session.
    average_confidence blends the previous value with this score 50/50.
    """
    user.total_games_played = (user.total_games_played or 0) + 1
    user.total_time_spent = (user.total_time_spent or 0) + max(0, int(duration or 0))

    best = user.best_scores
    best[game_type] = max(int(best.get(game_type, 0)), int(score))
    user.best_scores = best
    user.average_score = sum(best.values()) / len(best)

    user.average_confidence = ((user.average_confidence or 0.0) + score / 100) / 2

    _advance_streak(user, played_on or utcnow().date())
    user.last_active = utcnow()
    db.session.add(user)


def _session_unlocks(session: GameSession) -> List[str]:
    unlocked = []
    if session.score >= 100:
        unlocked.append('perfect_score')
    if session.game_type == RAPID_FIRE and session.accuracy >= 80 and 0 < session.speed <= 2:
        unlocked.append('speed_demon')
    if session.game_type == CONDUCTOR and session.energy_consistency >= 90:
        unlocked.append('energy_master')
    if session.game_type == TRIPLE_STEP and session.word_integration >= 90:
        unlocked.append('integration_expert')
    return unlocked


def check_achievements(user: User, session: Optional[GameSession] = None) -> List[Achievement]:
    """Append achievements the user now qualifies for; return only the new ones."""
    owned = user.achievement_types()
    candidates = []
    if (user.total_games_played or 0) >= 1:
        candidates.append('first_game')
    for threshold, achievement_type in STREAK_THRESHOLDS:
        if (user.current_streak or 0) >= threshold:
            candidates.append(achievement_type)
    if session is not None:
        candidates.extend(_session_unlocks(session))

    new_achievements = []
    for achievement_type in candidates:
        if achievement_type in owned:
            continue
        achievement = Achievement(achievement_type=achievement_type,
                                  description=ACHIEVEMENTS[achievement_type])
        user.achievements.append(achievement)
        owned.add(achievement_type)
        new_achievements.append(achievement)

    if new_achievements:
        logger.info(f"[achievements] user={user.id} unlocked {', '.join(a.achievement_type for a in new_achievements)}")
    return new_achievements
