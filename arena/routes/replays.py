from flask import Blueprint, jsonify, current_app
from flask_login import login_required

from . import get_payload

bp = Blueprint('replays', __name__)


@bp.route('/replays', methods=['GET'])
def list_replays():
    return jsonify([r.to_dict() for r in current_app.feed.list_replays()])


@bp.route('/replays', methods=['POST'])
@login_required
def create_replay():
    replay = current_app.feed.create_replay(get_payload())
    return jsonify(replay.to_dict()), 201


@bp.route('/replays/<replay_id>', methods=['GET'])
def get_replay(replay_id: str):
    return jsonify(current_app.feed.get_replay(replay_id).to_dict())
