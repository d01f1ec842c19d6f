from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required, current_user, logout_user
from podium import db
from podium.errors import ValidationError
from podium.models import User
from podium.services.games.lifecycle import SessionStore
from podium.services.progress import ProgressAnalyticsEngine


users = Blueprint('users', __name__)


@users.route('/stats', methods=['GET'])
@login_required
def stats():
    result = ProgressAnalyticsEngine().stats(
        current_user.id,
        game_type=request.args.get('game_type') or None,
        time_range=request.args.get('time_range', 'all'),
    )
    return jsonify({'stats': result})


@users.route('/achievements', methods=['GET'])
@login_required
def achievements():
    return jsonify(ProgressAnalyticsEngine().achievements(current_user.id))


@users.route('/leaderboard', methods=['GET'])
@login_required
def leaderboard():
    game_type = request.args.get('game_type')
    try:
        limit = int(request.args.get('limit', 10))
    except ValueError:
        raise ValidationError('limit must be an integer')
    return jsonify({
        'game_type': game_type,
        'leaderboard': ProgressAnalyticsEngine().leaderboard(game_type, limit),
    })


@users.route('/account', methods=['DELETE'])
@login_required
def delete_account():
    data = request.get_json(silent=True) or {}
    password = data.get('password')
    if not password:
        raise ValidationError('Password is required to delete account')
    user = db.session.get(User, current_user.id)
    if not user.check_password(password):
        raise ValidationError('Incorrect password')

    user_id = user.id
    logout_user()
    SessionStore().delete_for_user(user_id)
    db.session.delete(user)
    db.session.commit()
    current_app.logger.info(f"[delete_account] user={user_id}")
    return jsonify({'success': True, 'message': 'Account deleted successfully'})
