"""JSON envelope helpers shared by the API blueprints."""
from flask import jsonify, request

from kasir.exceptions import ValidationError


def success(data=None, status_code: int = 200, **extra):
    body = {'status': 'success', 'data': data}
    body.update(extra)
    return jsonify(body), status_code


def json_body() -> dict:
    """Request JSON object; an empty dict when the body is missing."""
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError('Body harus berupa objek JSON')
    return payload


def int_arg(name: str, default=None, minimum: int = None):
    """Integer query-string argument; malformed values raise ValidationError."""
    raw = request.args.get(name)
    if raw in (None, ''):
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValidationError(f'Parameter {name} harus berupa angka')
    if minimum is not None and value < minimum:
        raise ValidationError(f'Parameter {name} minimal {minimum}')
    return value
