"""JSON error responses shared by several blueprints."""

from flask import jsonify

from ..services.invite_service import InviteError

# code -> HTTP status
_INVITE_STATUS = {
    "invalid": 404,
    "expired": 410,
    "already_used": 409,
}


def invite_error_response(error: InviteError):
    return jsonify({
        "error": str(error),
        "code": error.code,
    }), _INVITE_STATUS.get(error.code, 400)
