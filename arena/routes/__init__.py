"""HTTP blueprints. Handlers raise ArenaError subclasses; app.py maps them to JSON."""
from flask import request

from ..errors import ValidationError


def get_payload() -> dict:
    """The request's JSON object body, or {} when there is none."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data
