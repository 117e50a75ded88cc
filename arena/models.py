import uuid
from datetime import datetime
from decimal import Decimal

from flask_sqlalchemy import SQLAlchemy
from flask_login import UserMixin

db = SQLAlchemy()


def generate_id() -> str:
    return str(uuid.uuid4())


def _iso(value):
    return value.isoformat() if value else None


def _money(value):
    return str(value if value is not None else Decimal('0'))


class User(UserMixin, db.Model):
    __tablename__ = 'users'

    # Subject issued by the external identity provider
    id = db.Column(db.String(64), primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=True)
    first_name = db.Column(db.String(100), nullable=True)
    last_name = db.Column(db.String(100), nullable=True)
    profile_image_url = db.Column(db.String(500), nullable=True)
    username = db.Column(db.String(100), nullable=True)
    is_admin = db.Column(db.Boolean, default=False)

    # Aggregate counters, written only on match/tournament completion
    total_points = db.Column(db.Integer, nullable=False, default=0)
    tournaments_won = db.Column(db.Integer, nullable=False, default=0)
    total_kills = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    memberships = db.relationship('TeamMember', back_populates='user', cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'profile_image_url': self.profile_image_url,
            'username': self.username,
            'is_admin': bool(self.is_admin),
            'total_points': self.total_points,
            'tournaments_won': self.tournaments_won,
            'total_kills': self.total_kills,
            'created_at': _iso(self.created_at),
        }


class Tournament(db.Model):
    __tablename__ = 'tournaments'

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    mode = db.Column(db.String(20), nullable=False)  # Solo, Duo, Squad
    type = db.Column(db.String(20), nullable=False)  # Free, Paid, Invite
    status = db.Column(db.String(20), nullable=False, default='open', index=True)  # open, live, completed
    entry_fee = db.Column(db.Numeric(10, 2), default=Decimal('0'))
    prize_pool = db.Column(db.Numeric(10, 2), nullable=False)
    max_teams = db.Column(db.Integer, nullable=False)
    current_teams = db.Column(db.Integer, nullable=False, default=0)
    start_date = db.Column(db.DateTime, nullable=False)
    end_date = db.Column(db.DateTime, nullable=True)
    rules = db.Column(db.Text, nullable=True)
    banner_url = db.Column(db.String(500), nullable=True)
    created_by = db.Column(db.String(64), db.ForeignKey('users.id'), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    creator = db.relationship('User')
    registrations = db.relationship('TournamentRegistration', back_populates='tournament',
                                    cascade='all, delete-orphan')
    matches = db.relationship('Match', back_populates='tournament', cascade='all, delete-orphan')

    __table_args__ = (
        db.CheckConstraint('current_teams >= 0', name='ck_current_teams_non_negative'),
        db.CheckConstraint('current_teams <= max_teams', name='ck_current_teams_within_capacity'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'mode': self.mode,
            'type': self.type,
            'status': self.status,
            'entry_fee': _money(self.entry_fee),
            'prize_pool': _money(self.prize_pool),
            'max_teams': self.max_teams,
            'current_teams': self.current_teams,
            'start_date': _iso(self.start_date),
            'end_date': _iso(self.end_date),
            'rules': self.rules,
            'banner_url': self.banner_url,
            'created_by': self.created_by,
            'created_at': _iso(self.created_at),
        }


class Team(db.Model):
    __tablename__ = 'teams'

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    name = db.Column(db.String(100), nullable=False)
    tag = db.Column(db.String(10), nullable=False)
    logo_url = db.Column(db.String(500), nullable=True)
    captain_id = db.Column(db.String(64), db.ForeignKey('users.id'), nullable=False)
    total_wins = db.Column(db.Integer, nullable=False, default=0)
    total_earnings = db.Column(db.Numeric(10, 2), nullable=False, default=Decimal('0'))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    captain = db.relationship('User')
    members = db.relationship('TeamMember', back_populates='team', cascade='all, delete-orphan')
    invitations = db.relationship('TeamInvitation', back_populates='team', cascade='all, delete-orphan')
    registrations = db.relationship('TournamentRegistration', back_populates='team',
                                    cascade='all, delete-orphan')
    results = db.relationship('MatchResult', back_populates='team', cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'tag': self.tag,
            'logo_url': self.logo_url,
            'captain_id': self.captain_id,
            'total_wins': self.total_wins,
            'total_earnings': _money(self.total_earnings),
            'created_at': _iso(self.created_at),
        }


class TeamMember(db.Model):
    __tablename__ = 'team_members'

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    team_id = db.Column(db.String(36), db.ForeignKey('teams.id', ondelete='CASCADE'), nullable=False)
    user_id = db.Column(db.String(64), db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    role = db.Column(db.String(20), nullable=False, default='member')  # captain, member
    joined_at = db.Column(db.DateTime, default=datetime.utcnow)

    team = db.relationship('Team', back_populates='members')
    user = db.relationship('User', back_populates='memberships')

    __table_args__ = (
        db.UniqueConstraint('team_id', 'user_id', name='unique_member_per_team'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'team_id': self.team_id,
            'user_id': self.user_id,
            'role': self.role,
            'joined_at': _iso(self.joined_at),
            'user': self.user.to_dict() if self.user else None,
        }


class TeamInvitation(db.Model):
    __tablename__ = 'team_invitations'

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    team_id = db.Column(db.String(36), db.ForeignKey('teams.id', ondelete='CASCADE'), nullable=False)
    user_id = db.Column(db.String(64), db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    invited_by = db.Column(db.String(64), db.ForeignKey('users.id'), nullable=False)
    status = db.Column(db.String(20), nullable=False, default='pending')  # pending, accepted, declined
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    team = db.relationship('Team', back_populates='invitations')
    invitee = db.relationship('User', foreign_keys=[user_id])
    inviter = db.relationship('User', foreign_keys=[invited_by])

    def to_dict(self, include_team: bool = False):
        data = {
            'id': self.id,
            'team_id': self.team_id,
            'user_id': self.user_id,
            'invited_by': self.invited_by,
            'status': self.status,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
        }
        if include_team:
            data['team'] = self.team.to_dict() if self.team else None
            data['inviter'] = self.inviter.to_dict() if self.inviter else None
        return data


class TournamentRegistration(db.Model):
    __tablename__ = 'tournament_registrations'

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    tournament_id = db.Column(db.String(36), db.ForeignKey('tournaments.id', ondelete='CASCADE'),
                              nullable=False)
    team_id = db.Column(db.String(36), db.ForeignKey('teams.id', ondelete='CASCADE'), nullable=False)
    registered_at = db.Column(db.DateTime, default=datetime.utcnow)

    tournament = db.relationship('Tournament', back_populates='registrations')
    team = db.relationship('Team', back_populates='registrations')

    __table_args__ = (
        db.UniqueConstraint('tournament_id', 'team_id', name='unique_registration_per_tournament'),
    )

    def to_dict(self, include_team: bool = False):
        data = {
            'id': self.id,
            'tournament_id': self.tournament_id,
            'team_id': self.team_id,
            'registered_at': _iso(self.registered_at),
        }
        if include_team:
            data['team'] = self.team.to_dict() if self.team else None
        return data


class Match(db.Model):
    __tablename__ = 'matches'

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    tournament_id = db.Column(db.String(36), db.ForeignKey('tournaments.id', ondelete='CASCADE'),
                              nullable=False)
    name = db.Column(db.String(200), nullable=False)
    round = db.Column(db.String(50), nullable=False)  # qualifier, semi, final
    status = db.Column(db.String(20), nullable=False, default='scheduled', index=True)  # scheduled, live, completed
    room_id = db.Column(db.String(100), nullable=True)
    room_password = db.Column(db.String(100), nullable=True)
    start_time = db.Column(db.DateTime, nullable=False)
    end_time = db.Column(db.DateTime, nullable=True)
    current_zone = db.Column(db.Integer, default=1)
    players_alive = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    tournament = db.relationship('Tournament', back_populates='matches')
    results = db.relationship('MatchResult', back_populates='match', cascade='all, delete-orphan')
    chat_messages = db.relationship('ChatMessage', back_populates='match', cascade='all, delete-orphan')
    replays = db.relationship('MatchReplay', back_populates='match', cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'tournament_id': self.tournament_id,
            'name': self.name,
            'round': self.round,
            'status': self.status,
            'room_id': self.room_id,
            'room_password': self.room_password,
            'start_time': _iso(self.start_time),
            'end_time': _iso(self.end_time),
            'current_zone': self.current_zone,
            'players_alive': self.players_alive,
            'created_at': _iso(self.created_at),
        }


class MatchResult(db.Model):
    __tablename__ = 'match_results'

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    match_id = db.Column(db.String(36), db.ForeignKey('matches.id', ondelete='CASCADE'), nullable=False)
    team_id = db.Column(db.String(36), db.ForeignKey('teams.id', ondelete='CASCADE'), nullable=False)
    position = db.Column(db.Integer, nullable=True)  # assigned on elimination or completion
    kills = db.Column(db.Integer, nullable=False, default=0)
    points = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(20), nullable=False, default='alive')  # alive, eliminated
    eliminated_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    match = db.relationship('Match', back_populates='results')
    team = db.relationship('Team', back_populates='results')

    __table_args__ = (
        db.UniqueConstraint('match_id', 'team_id', name='unique_result_per_match'),
        db.UniqueConstraint('match_id', 'position', name='unique_position_per_match'),
        db.CheckConstraint('kills >= 0', name='ck_kills_non_negative'),
    )

    def to_dict(self, include_team: bool = False):
        data = {
            'id': self.id,
            'match_id': self.match_id,
            'team_id': self.team_id,
            'position': self.position,
            'kills': self.kills,
            'points': self.points,
            'status': self.status,
            'eliminated_at': _iso(self.eliminated_at),
            'created_at': _iso(self.created_at),
        }
        if include_team:
            data['team'] = self.team.to_dict() if self.team else None
        return data


class ChatMessage(db.Model):
    __tablename__ = 'chat_messages'

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    match_id = db.Column(db.String(36), db.ForeignKey('matches.id', ondelete='CASCADE'), nullable=False)
    user_id = db.Column(db.String(64), db.ForeignKey('users.id'), nullable=False)
    message = db.Column(db.Text, nullable=False)
    type = db.Column(db.String(20), nullable=False, default='user')  # user, admin, system
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    match = db.relationship('Match', back_populates='chat_messages')
    user = db.relationship('User')

    def to_dict(self):
        return {
            'id': self.id,
            'match_id': self.match_id,
            'user_id': self.user_id,
            'message': self.message,
            'type': self.type,
            'created_at': _iso(self.created_at),
            'user': self.user.to_dict() if self.user else None,
        }


class MatchReplay(db.Model):
    __tablename__ = 'match_replays'

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    match_id = db.Column(db.String(36), db.ForeignKey('matches.id', ondelete='CASCADE'), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    video_url = db.Column(db.String(500), nullable=False)
    thumbnail_url = db.Column(db.String(500), nullable=True)
    duration = db.Column(db.String(20), nullable=True)
    views = db.Column(db.Integer, nullable=False, default=0)
    likes = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    match = db.relationship('Match', back_populates='replays')

    def to_dict(self):
        return {
            'id': self.id,
            'match_id': self.match_id,
            'title': self.title,
            'description': self.description,
            'video_url': self.video_url,
            'thumbnail_url': self.thumbnail_url,
            'duration': self.duration,
            'views': self.views,
            'likes': self.likes,
            'created_at': _iso(self.created_at),
        }
