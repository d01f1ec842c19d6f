from datetime import date

from podium import db
from podium.models import GameSession
from podium.services.games.stats import update_stats, check_achievements


def test_first_session_updates_aggregates(make_user):
    user = make_user()
    update_stats(user, 'rapidFire', 70, 95, date(2026, 3, 2))
    db.session.commit()

    assert user.total_games_played == 1
    assert user.total_time_spent == 95
    assert user.best_scores == {'rapidFire': 70, 'conductor': 0, 'tripleStep': 0}
    # Mean of the three per-type bests
    assert round(user.average_score, 4) == round(70 / 3, 4)
    assert user.average_confidence == 0.35
    assert user.current_streak == 1
    assert user.longest_streak == 1


def test_best_score_never_decreases(make_user):
    user = make_user()
    update_stats(user, 'conductor', 80, 60, date(2026, 3, 2))
    update_stats(user, 'conductor', 40, 60, date(2026, 3, 2))
    assert user.best_scores['conductor'] == 80


def test_streak_counts_consecutive_days(make_user):
    user = make_user()
    for day in (1, 1, 2, 3):
        update_stats(user, 'tripleStep', 50, 30, date(2026, 3, day))
    assert user.current_streak == 3
    update_stats(user, 'tripleStep', 50, 30, date(2026, 3, 7))
    assert user.current_streak == 1
    assert user.longest_streak == 3


def test_first_game_unlocks_once(make_user):
    user = make_user()
    update_stats(user, 'rapidFire', 70, 30, date(2026, 3, 2))
    unlocked = check_achievements(user)
    assert [a.achievement_type for a in unlocked] == ['first_game']
    db.session.commit()

    update_stats(user, 'rapidFire', 70, 30, date(2026, 3, 2))
    assert check_achievements(user) == []
    assert [a.achievement_type for a in user.achievements] == ['first_game']


def test_streak_achievement(make_user):
    user = make_user()
    for day in range(1, 6):
        update_stats(user, 'conductor', 50, 30, date(2026, 3, day))
    types = {a.achievement_type for a in check_achievements(user)}
    assert types == {'first_game', 'streak_5'}


def test_session_based_unlocks(make_user):
    user = make_user()
    session = GameSession(user_id=user.id, game_type='rapidFire', score=100, accuracy=100, speed=2,
                          energy_consistency=0, word_integration=0, is_completed=True)
    update_stats(user, 'rapidFire', 100, 30, date(2026, 3, 2))
    types = {a.achievement_type for a in check_achievements(user, session)}
    assert types == {'first_game', 'perfect_score', 'speed_demon'}
