import os
import logging

from flask import Flask, jsonify
from flask_migrate import Migrate
from sqlalchemy import text
from werkzeug.exceptions import HTTPException

from .auth import login_manager
from .config import config
from .errors import ArenaError
from .models import db
from .match_feed import MatchFeed
from .match_lifecycle import MatchLifecycleManager
from .ranking_aggregator import RankingAggregator
from .registration_guard import RegistrationGuard
from .scoring import ScoringRules
from .team_manager import TeamManager
from .tournament_registry import TournamentRegistry

logger = logging.getLogger(__name__)

migrate = Migrate()


def create_app(config_name: str = None) -> Flask:
    """Application factory for the arena API."""
    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config[config_name])

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    # Initialize services; db.session resolves to the current request's session
    scoring = ScoringRules.from_config(app.config)
    app.registrations = RegistrationGuard(db.session)
    app.tournaments = TournamentRegistry(db.session, scoring=scoring)
    app.lifecycle = MatchLifecycleManager(db.session, scoring=scoring)
    app.feed = MatchFeed(db.session)
    app.teams = TeamManager(
        db.session,
        registrations=app.registrations,
        max_members=app.config['TEAM_MAX_MEMBERS']
    )
    app.rankings = RankingAggregator(db.session, limit=app.config['RANKINGS_LIMIT'])

    if app.config.get('TESTING') or app.config.get('DEBUG'):
        with app.app_context():
            db.create_all()

    register_error_handlers(app)
    register_blueprints(app)

    return app


def register_blueprints(app: Flask):
    from .routes import auth, tournaments, teams, matches, rankings, replays

    app.register_blueprint(auth.bp)
    app.register_blueprint(tournaments.bp)
    app.register_blueprint(teams.bp)
    app.register_blueprint(matches.bp)
    app.register_blueprint(rankings.bp)
    app.register_blueprint(replays.bp)

    @app.route('/health')
    def health_check():
        """Health check endpoint."""
        try:
            db.session.execute(text('SELECT 1'))
            db_ok = True
        except Exception:
            logger.exception("Database health check failed")
            db_ok = False

        status = 'healthy' if db_ok else 'unhealthy'
        code = 200 if db_ok else 503

        return jsonify({
            'status': status,
            'database': 'connected' if db_ok else 'disconnected'
        }), code


def register_error_handlers(app: Flask):
    """Every error leaves the API as {"error": message} with a distinct status."""

    @app.errorhandler(ArenaError)
    def handle_arena_error(error: ArenaError):
        db.session.rollback()
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):
        return jsonify({'error': error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        db.session.rollback()
        logger.exception(f"Unhandled error: {error}")
        return jsonify({'error': 'Internal server error'}), 500
