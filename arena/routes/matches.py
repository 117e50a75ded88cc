from flask import Blueprint, jsonify, current_app
from flask_login import login_required, current_user

from . import get_payload
from ..errors import ValidationError

bp = Blueprint('matches', __name__)


@bp.route('/matches', methods=['GET'])
def list_matches():
    return jsonify([m.to_dict() for m in current_app.lifecycle.list_matches()])


@bp.route('/matches', methods=['POST'])
@login_required
def create_match():
    match = current_app.lifecycle.create_match(get_payload())
    return jsonify(match.to_dict()), 201


@bp.route('/matches/<match_id>', methods=['GET'])
def get_match(match_id: str):
    return jsonify(current_app.lifecycle.get_match(match_id).to_dict())


@bp.route('/matches/<match_id>', methods=['PATCH'])
@login_required
def update_match(match_id: str):
    match = current_app.lifecycle.update_match(match_id, get_payload())
    return jsonify(match.to_dict())


@bp.route('/matches/<match_id>', methods=['DELETE'])
@login_required
def delete_match(match_id: str):
    current_app.lifecycle.delete_match(match_id)
    return jsonify({'message': 'Match deleted'})


# ==================== Results ====================

@bp.route('/matches/<match_id>/results', methods=['GET'])
def list_results(match_id: str):
    results = current_app.lifecycle.list_results(match_id)
    return jsonify([r.to_dict(include_team=True) for r in results])


@bp.route('/matches/<match_id>/results', methods=['POST'])
@login_required
def create_result(match_id: str):
    data = get_payload()
    team_id = data.get('teamId') or data.get('team_id')
    if not team_id:
        raise ValidationError("teamId is required")

    result = current_app.lifecycle.create_match_result(match_id, team_id, kills=data.get('kills', 0))
    return jsonify(result.to_dict(include_team=True)), 201


@bp.route('/matches/<match_id>/leaderboard', methods=['GET'])
def get_leaderboard(match_id: str):
    return jsonify(current_app.lifecycle.get_leaderboard(match_id))


@bp.route('/match-results/<result_id>', methods=['PATCH'])
@login_required
def update_result(result_id: str):
    """Kill updates and eliminations; see MatchLifecycleManager.update_result."""
    result = current_app.lifecycle.update_result(result_id, get_payload())
    return jsonify(result.to_dict(include_team=True))


# ==================== Chat ====================

@bp.route('/matches/<match_id>/chat', methods=['GET'])
def list_chat_messages(match_id: str):
    return jsonify([m.to_dict() for m in current_app.feed.list_chat_messages(match_id)])


@bp.route('/matches/<match_id>/chat', methods=['POST'])
@login_required
def post_chat_message(match_id: str):
    data = get_payload()
    message = current_app.feed.post_chat_message(
        match_id, current_user, data.get('message'), message_type=data.get('type', 'user')
    )
    return jsonify(message.to_dict()), 201
