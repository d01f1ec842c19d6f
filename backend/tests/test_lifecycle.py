import pytest
import sqlalchemy as sa

from podium import db
from podium.errors import AlreadyCompletedError
from podium.models import GameSession
from podium.services.games import lifecycle
from podium.services.games.lifecycle import SessionStore

RAPID_FIRE_DATA = {'rapidFire': {'total_prompts': 4, 'completed_responses': 3, 'response_time': 2}}


def test_losing_concurrent_end_leaves_stats_untouched(make_user):
    user = make_user()
    store = SessionStore()
    session = store.start(user.id, 'rapidFire')
    read_session = store.get

    def stale_get(user_id, session_id):
        found = read_session(user_id, session_id)
        # Another request completes the row after this one has read it as open
        db.session.execute(
            sa.update(GameSession)
            .where(GameSession.id == session_id)
            .values(is_completed=True)
            .execution_options(synchronize_session=False)
        )
        return found

    store.get = stale_get
    with pytest.raises(AlreadyCompletedError):
        store.end(user.id, session.id, None, RAPID_FIRE_DATA)

    db.session.refresh(user)
    assert user.total_games_played == 0
    assert user.achievements == []


def test_stats_failure_still_completes_session(make_user, monkeypatch):
    user = make_user()
    store = SessionStore()
    session = store.start(user.id, 'rapidFire')

    def broken_update(target, *args):
        target.total_games_played = 99
        db.session.flush()
        raise KeyError('best_scores')

    monkeypatch.setattr(lifecycle, 'update_stats', broken_update)
    finalized = store.end(user.id, session.id, None, RAPID_FIRE_DATA)

    assert finalized.session.is_completed is True
    assert finalized.session.score == 75
    assert finalized.new_achievements == []
    db.session.refresh(user)
    assert user.total_games_played == 0
