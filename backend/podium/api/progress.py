from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required, current_user
from podium.services.progress import ProgressAnalyticsEngine


progress = Blueprint('progress', __name__)


def _engine() -> ProgressAnalyticsEngine:
    return ProgressAnalyticsEngine(
        feedback=current_app.extensions.get('podium_feedback'),
        insights_limit=current_app.config.get('INSIGHTS_SESSION_LIMIT', 20),
    )


@progress.route('/overview', methods=['GET'])
@login_required
def overview():
    result = _engine().overview(current_user.id, request.args.get('time_range', 'month'))
    return jsonify({'progress': result})


@progress.route('/analytics', methods=['GET'])
@login_required
def analytics():
    result = _engine().analytics(
        current_user.id,
        game_type=request.args.get('game_type') or None,
        time_range=request.args.get('time_range', 'month'),
    )
    return jsonify({'analytics': result})


@progress.route('/insights', methods=['GET'])
@login_required
def insights():
    time_range = request.args.get('time_range', 'month')
    result = _engine().insights(current_user.id, time_range)
    current_app.logger.info(f"[insights] user={current_user.id} range={time_range} "
                            f"source={result.get('source', 'none')}")
    return jsonify({'insights': result})


@progress.route('/compare', methods=['GET'])
@login_required
def compare():
    result = _engine().compare(
        current_user.id,
        request.args.get('period1'),
        request.args.get('period2'),
        game_type=request.args.get('game_type') or None,
    )
    return jsonify({'comparison': result})
