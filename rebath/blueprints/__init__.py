"""HTTP blueprints. Request parsing and JSON serialization only; queries live in services."""
from flask import jsonify, request

from rebath.exceptions import ValidationError


def json_body() -> dict:
    """Request JSON object, or {} for an empty body."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


def require_confirmation(data: dict) -> None:
    """Destructive endpoints need ``{"confirm": true}`` in the body."""
    if data.get('confirm') is not True:
        raise ValidationError('This action cannot be undone; resend with "confirm": true')


def success(data=None, status_code=200, **extra):
    body = {'status': 'ok', 'data': data}
    body.update(extra)
    return jsonify(body), status_code


def arg_flag(name: str) -> bool:
    return request.args.get(name, '').lower() in ('1', 'true', 'yes')
