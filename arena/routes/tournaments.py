from flask import Blueprint, request, jsonify, current_app
from flask_login import login_required, current_user

from . import get_payload
from ..errors import ValidationError

bp = Blueprint('tournaments', __name__)


@bp.route('/tournaments', methods=['GET'])
def list_tournaments():
    tournaments = current_app.tournaments.list_tournaments(status=request.args.get('status'))
    return jsonify([t.to_dict() for t in tournaments])


@bp.route('/tournaments', methods=['POST'])
@login_required
def create_tournament():
    tournament = current_app.tournaments.create_tournament(get_payload(), created_by=current_user)
    return jsonify(tournament.to_dict()), 201


@bp.route('/tournaments/<tournament_id>', methods=['GET'])
def get_tournament(tournament_id: str):
    return jsonify(current_app.tournaments.get_tournament(tournament_id).to_dict())


@bp.route('/tournaments/<tournament_id>', methods=['PATCH'])
@login_required
def update_tournament(tournament_id: str):
    tournament = current_app.tournaments.update_tournament(
        tournament_id, get_payload(), requested_by=current_user
    )
    return jsonify(tournament.to_dict())


@bp.route('/tournaments/<tournament_id>', methods=['DELETE'])
@login_required
def delete_tournament(tournament_id: str):
    current_app.tournaments.delete_tournament(tournament_id, requested_by=current_user)
    return jsonify({'message': 'Tournament deleted'})


# ==================== Registrations ====================

@bp.route('/tournaments/<tournament_id>/registrations', methods=['GET'])
def list_registrations(tournament_id: str):
    registrations = current_app.registrations.list_registrations(tournament_id)
    return jsonify([r.to_dict(include_team=True) for r in registrations])


@bp.route('/tournaments/<tournament_id>/register', methods=['POST'])
@login_required
def register_team(tournament_id: str):
    data = get_payload()
    # Web client sends camelCase
    team_id = data.get('teamId') or data.get('team_id')
    if not team_id:
        raise ValidationError("teamId is required")

    registration = current_app.registrations.register_team(tournament_id, team_id)
    return jsonify(registration.to_dict(include_team=True)), 201


@bp.route('/tournaments/<tournament_id>/register/<team_id>', methods=['DELETE'])
@login_required
def unregister_team(tournament_id: str, team_id: str):
    current_app.registrations.unregister_team(tournament_id, team_id)
    return jsonify({'message': 'Registration cancelled'})


# ==================== Matches and standings ====================

@bp.route('/tournaments/<tournament_id>/matches', methods=['GET'])
def list_tournament_matches(tournament_id: str):
    matches = current_app.lifecycle.list_tournament_matches(tournament_id)
    return jsonify([m.to_dict() for m in matches])


@bp.route('/tournaments/<tournament_id>/standings', methods=['GET'])
def get_standings(tournament_id: str):
    return jsonify(current_app.tournaments.get_standings(tournament_id))
