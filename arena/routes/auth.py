from flask import Blueprint, jsonify
from flask_login import login_required, current_user

bp = Blueprint('auth', __name__)


@bp.route('/auth/user', methods=['GET'])
@login_required
def get_current_user():
    """The caller as known to the arena, upserted from the identity headers."""
    return jsonify(current_user.to_dict())
