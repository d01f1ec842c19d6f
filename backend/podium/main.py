from flask import Blueprint, request, jsonify, current_app
from flask_login import login_user, logout_user, login_required, current_user
from podium import db
from podium.constants import DIFFICULTIES
from podium.errors import ValidationError
from podium.models import User
from podium.utils import utcnow

main = Blueprint('main', __name__)


@main.route('/health', methods=['GET'])
def health():
    return jsonify({'status': 'ok', 'timestamp': utcnow().isoformat()})


@main.route('/login', methods=['POST', 'OPTIONS'])
def login():
    if request.method == 'OPTIONS':
        return jsonify({'status': 'ok'}), 200
    data = request.get_json(silent=True) or {}
    identifier = data.get('username') or data.get('email')
    password = data.get('password')
    if not identifier or not password:
        raise ValidationError('Username and password are required')
    user = User.query.filter((User.username == identifier) | (User.email == identifier)).first()
    if user and user.check_password(password):
        login_user(user)
        user.last_active = utcnow()
        db.session.commit()
        current_app.logger.info(f"[login] user={user.id}")
        return jsonify({"success": True, "user": user.to_dict()})
    return jsonify({"success": False, "message": "Invalid credentials"}), 401


@main.route('/register', methods=['POST', 'OPTIONS'])
def register():
    if request.method == 'OPTIONS':
        return jsonify({'status': 'ok'}), 200
    data = request.get_json(silent=True) or {}
    username = (data.get('username') or '').strip()
    password = data.get('password') or ''
    email = (data.get('email') or '').strip() or None
    difficulty = data.get('preferred_difficulty') or 'beginner'
    if len(username) < 3 or len(username) > 64:
        raise ValidationError('Username must be between 3 and 64 characters')
    if len(password) < 6:
        raise ValidationError('Password must be at least 6 characters')
    if difficulty not in DIFFICULTIES:
        raise ValidationError(f"Invalid difficulty: {difficulty!r}")
    if User.query.filter_by(username=username).first():
        return jsonify({"success": False, "message": "Username already exists"}), 400
    if email and User.query.filter_by(email=email).first():
        return jsonify({"success": False, "message": "Email already registered"}), 400

    new_user = User(username=username, email=email, preferred_difficulty=difficulty)
    new_user.set_password(password)
    db.session.add(new_user)
    db.session.commit()
    login_user(new_user)
    current_app.logger.info(f"[register] user={new_user.id} username={username}")
    return jsonify({"success": True, "user": new_user.to_dict()}), 201


@main.route('/check_login', methods=['GET', 'OPTIONS'])
def check_login():
    if request.method == 'OPTIONS':
        return jsonify({'status': 'ok'}), 200

    @login_required
    def protected_check():
        return jsonify({"success": True, "user": current_user.to_dict()})

    return protected_check()


@main.route('/logout', methods=['POST', 'OPTIONS'])
@login_required
def logout():
    logout_user()
    return jsonify({"success": True})
