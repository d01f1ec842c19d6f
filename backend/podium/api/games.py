from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required, current_user
from podium.errors import ValidationError
from podium.services.games.lifecycle import SessionStore
from podium.services.prompts import PromptCatalog
from podium.socketio_events import notify_session_completed


games = Blueprint('games', __name__)


def _store() -> SessionStore:
    return SessionStore(orchestrator=current_app.extensions.get('podium_ai'))


def _int_arg(name: str, default: int) -> int:
    raw = request.args.get(name)
    if raw in (None, ''):
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an integer")


@games.route('/start-session', methods=['POST'])
@login_required
def start_session():
    data = request.get_json(silent=True) or {}
    game_type = data.get('game_type')
    difficulty = data.get('difficulty') or current_user.preferred_difficulty
    count = data.get('count')
    if count is not None:
        try:
            count = int(count)
        except (TypeError, ValueError):
            raise ValidationError('count must be an integer')
    session = _store().start(current_user.id, game_type, difficulty)
    prompts = PromptCatalog().prompts_for(session.game_type, session.difficulty, count)
    current_app.logger.info(f"[start_session] session={session.id} user={current_user.id} type={game_type}")
    return jsonify({
        'session_id': session.id,
        'session': session.to_dict(),
        'prompts': prompts,
    }), 201


@games.route('/end-session/<int:session_id>', methods=['POST'])
@login_required
def end_session(session_id):
    data = request.get_json(silent=True) or {}
    performance = data.get('performance')
    game_specific_data = data.get('game_specific_data')
    if performance is not None and not isinstance(performance, dict):
        raise ValidationError('performance must be an object')
    if game_specific_data is not None and not isinstance(game_specific_data, dict):
        raise ValidationError('game_specific_data must be an object')

    finalized = _store().end(current_user.id, session_id, performance, game_specific_data)
    payload = finalized.to_dict()
    current_app.logger.info(
        f"[end_session] session={session_id} user={current_user.id} "
        f"score={payload['session']['performance']['score']} ai_source={finalized.ai_analysis.source} "
        f"new_achievements={len(finalized.new_achievements)}"
    )
    notify_session_completed(session_id, payload)
    return jsonify(payload)


@games.route('/sessions', methods=['GET'])
@login_required
def list_sessions():
    sessions, pagination = _store().list_for_user(
        current_user.id,
        game_type=request.args.get('game_type') or None,
        page=_int_arg('page', 1),
        limit=_int_arg('limit', 20),
        sort_by=request.args.get('sort_by', 'start_time'),
        sort_order=request.args.get('sort_order', 'desc'),
    )
    return jsonify({
        'sessions': [s.to_dict() for s in sessions],
        'pagination': pagination,
    })


@games.route('/sessions/<int:session_id>', methods=['GET'])
@login_required
def get_session(session_id):
    session = _store().get(current_user.id, session_id)
    return jsonify({'session': session.to_dict()})
