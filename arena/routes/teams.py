from flask import Blueprint, jsonify, current_app
from flask_login import login_required, current_user

from . import get_payload
from ..errors import ValidationError

bp = Blueprint('teams', __name__)


@bp.route('/teams', methods=['GET'])
def list_teams():
    return jsonify([t.to_dict() for t in current_app.teams.list_teams()])


@bp.route('/teams', methods=['POST'])
@login_required
def create_team():
    team = current_app.teams.create_team(get_payload(), captain=current_user)
    return jsonify(team.to_dict()), 201


@bp.route('/teams/<team_id>', methods=['GET'])
def get_team(team_id: str):
    return jsonify(current_app.teams.get_team(team_id).to_dict())


@bp.route('/teams/<team_id>', methods=['DELETE'])
@login_required
def delete_team(team_id: str):
    current_app.teams.delete_team(team_id, requested_by=current_user)
    return jsonify({'message': 'Team deleted'})


@bp.route('/teams/<team_id>/members', methods=['GET'])
def list_members(team_id: str):
    return jsonify([m.to_dict() for m in current_app.teams.list_members(team_id)])


# ==================== Current user ====================

@bp.route('/user/team', methods=['GET'])
@login_required
def get_user_team():
    """The caller's team, or null when they have none."""
    team = current_app.teams.get_user_team(current_user.id)
    return jsonify(team.to_dict() if team else None)


@bp.route('/user/invitations', methods=['GET'])
@login_required
def list_user_invitations():
    invitations = current_app.teams.list_user_invitations(current_user.id)
    return jsonify([i.to_dict(include_team=True) for i in invitations])


# ==================== Invitations ====================

@bp.route('/team-invitations', methods=['POST'])
@login_required
def invite():
    data = get_payload()
    team_id = data.get('teamId') or data.get('team_id')
    user_id = data.get('userId') or data.get('user_id')
    if not team_id or not user_id:
        raise ValidationError("teamId and userId are required")

    invitation = current_app.teams.invite(team_id, user_id, invited_by=current_user)
    return jsonify(invitation.to_dict()), 201


@bp.route('/team-invitations/<invitation_id>', methods=['PATCH'])
@login_required
def respond_to_invitation(invitation_id: str):
    data = get_payload()
    if not data.get('status'):
        raise ValidationError("status is required")

    invitation = current_app.teams.respond_to_invitation(
        invitation_id, data['status'], responder=current_user
    )
    return jsonify(invitation.to_dict(include_team=True))
