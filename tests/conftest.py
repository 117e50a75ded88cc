"""
Pytest configuration and fixtures for arena tests.
"""
import os
from datetime import datetime
from decimal import Decimal

import pytest

# Set testing environment before importing app
os.environ['FLASK_ENV'] = 'testing'

from arena.app import create_app
from arena.models import db, User, Team, TeamMember, Tournament, Match, MatchResult

ADMIN_ID = 'admin-1'


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app('testing')
    app.config['ADMIN_USER_IDS'] = {ADMIN_ID}

    yield app

    with app.app_context():
        db.drop_all()


def _clear_tables():
    for table in reversed(db.metadata.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()


@pytest.fixture(scope='function')
def client(app):
    """
    Test client over an empty database.

    No app context stays pushed while requests run, so every request gets
    its own session and its own current_user.
    """
    with app.app_context():
        _clear_tables()
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Database session for service-level tests; tables are emptied first."""
    with app.app_context():
        db.session.remove()
        _clear_tables()

        yield db.session

        db.session.rollback()


@pytest.fixture
def auth_headers():
    """Identity proxy headers for a user id."""
    def _headers(user_id, email=None, name=None):
        headers = {'X-User-Id': user_id}
        if email:
            headers['X-User-Email'] = email
        if name:
            headers['X-User-Name'] = name
        return headers
    return _headers


# ==================== Model factories ====================

class ModelFactory:
    """Inserts committed rows straight through the session, bypassing the services."""

    def __init__(self, session):
        self.session = session

    def _save(self, obj):
        self.session.add(obj)
        self.session.commit()
        return obj

    def user(self, user_id, is_admin=False):
        return self._save(
            User(id=user_id, username=user_id, email=f'{user_id}@example.com', is_admin=is_admin)
        )

    def team(self, captain, name, tag, members=()):
        team = Team(name=name, tag=tag, captain_id=captain.id)
        self.session.add(team)
        self.session.flush()
        self.session.add(TeamMember(team_id=team.id, user_id=captain.id, role='captain'))
        for member in members:
            self.session.add(TeamMember(team_id=team.id, user_id=member.id, role='member'))
        self.session.commit()
        return team

    def tournament(self, creator, **overrides):
        fields = dict(
            name='BGMI Pro Series',
            mode='Squad',
            type='Free',
            status='open',
            prize_pool=Decimal('300'),
            max_teams=16,
            current_teams=0,
            start_date=datetime(2026, 11, 1, 18, 0),
            created_by=creator.id
        )
        fields.update(overrides)
        return self._save(Tournament(**fields))

    def match(self, tournament, status='scheduled', round_name='qualifier'):
        return self._save(Match(
            tournament_id=tournament.id,
            name=f'{round_name}-erangel',
            round=round_name,
            status=status,
            start_time=datetime(2026, 11, 1, 18, 30)
        ))

    def result(self, match, team, **fields):
        return self._save(MatchResult(match_id=match.id, team_id=team.id, **fields))


@pytest.fixture
def factory(db_session):
    return ModelFactory(db_session)


# ==================== Sample data ====================

@pytest.fixture
def organiser(factory):
    return factory.user('organiser-1')


@pytest.fixture
def admin(factory):
    return factory.user(ADMIN_ID, is_admin=True)


@pytest.fixture
def players(factory):
    """Six players: captains first, then one teammate per team."""
    return [factory.user(f'player-{i + 1}') for i in range(6)]


@pytest.fixture
def sample_teams(factory, players):
    """Three two-player squads."""
    return [
        factory.team(players[0], 'Soul', 'SOUL', members=[players[3]]),
        factory.team(players[1], 'GodLike', 'GDL', members=[players[4]]),
        factory.team(players[2], 'Blind', 'BLD', members=[players[5]]),
    ]


@pytest.fixture
def sample_tournament(factory, organiser):
    return factory.tournament(organiser)


@pytest.fixture
def live_match(factory, sample_tournament, sample_teams):
    """A live match with one alive result per sample team."""
    match = factory.match(sample_tournament, status='live')
    for team in sample_teams:
        factory.result(match, team)
    return match
