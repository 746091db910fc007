from flask import Blueprint, request

from ..errors import ValidationError

api_bp = Blueprint('api', __name__)


def json_body():
    """Return the request's JSON object, or ``{}`` when there is no body."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


from . import api_routes, athlete_routes, event_routes, checkin_routes, auth_routes  # noqa: F401,E402
