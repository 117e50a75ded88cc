from flask import Blueprint, jsonify, current_app

bp = Blueprint('rankings', __name__)


@bp.route('/rankings/players', methods=['GET'])
def player_rankings():
    return jsonify([u.to_dict() for u in current_app.rankings.get_player_rankings()])


@bp.route('/rankings/teams', methods=['GET'])
def team_rankings():
    return jsonify([t.to_dict() for t in current_app.rankings.get_team_rankings()])


@bp.route('/stats', methods=['GET'])
def tournament_stats():
    return jsonify(current_app.rankings.get_tournament_stats())
