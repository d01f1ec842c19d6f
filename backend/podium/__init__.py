from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()
allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:8080",
    "http://127.0.0.1:8080",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)


def create_app(config_class=Config, feedback_provider=None):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Feedback provider and the services built on it live on the app, not in module globals
    from podium.services.ai.provider import provider_from_config
    from podium.services.ai.orchestrator import AIAnalysisOrchestrator
    from podium.services.ai.feedback import FeedbackGenerator
    provider = feedback_provider or provider_from_config(flask_app.config)
    flask_app.extensions['podium_ai'] = AIAnalysisOrchestrator(
        provider,
        max_workers=flask_app.config.get('AI_MAX_WORKERS', 4),
        timeout=flask_app.config.get('AI_ANALYSIS_TIMEOUT_SEC', 45),
    )
    flask_app.extensions['podium_feedback'] = FeedbackGenerator(
        provider,
        max_tokens=flask_app.config.get('OPENAI_MAX_TOKENS', 1000),
    )

    from podium.errors import PodiumError

    @flask_app.errorhandler(PodiumError)
    def handle_podium_error(error):
        return jsonify(error.to_dict()), error.status_code

    # Import and register blueprints here
    from podium.main import main
    flask_app.register_blueprint(main)

    from podium.api.games import games
    flask_app.register_blueprint(games, url_prefix='/api/games')

    from podium.api.progress import progress
    flask_app.register_blueprint(progress, url_prefix='/api/progress')

    from podium.api.users import users
    flask_app.register_blueprint(users, url_prefix='/api/users')

    # Register Socket.IO event handlers
    from podium.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    # Flask-Login user loader
    from podium.models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'error': 'Authentication required'}), 401

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            # Seed users
            users = ['testuser1', 'testuser2', 'testuser3']
            for u in users:
                user = User(username=u, email=f'{u}@example.com')
                user.set_password('password')
                db.session.add(user)

            db.session.commit()
            print('Database has been reset and seeded!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
