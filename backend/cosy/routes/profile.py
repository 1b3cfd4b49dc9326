# Overview: Flask API routes for the caller's own profile.

from flask import Blueprint, request, jsonify, g

from ..decorators import require_auth
from ..services import profile_service
from ..services.profile_service import ProfileNotFoundError
from ..validation import ValidationError


profile_bp = Blueprint("profile", __name__, url_prefix="/api/profile")


@profile_bp.get("")
@require_auth
def get_profile_route():
    try:
        profile = profile_service.get_profile(g.current_user.id)
    except ProfileNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(profile.to_dict())


@profile_bp.patch("")
@require_auth
def update_profile_route():
    """
    Update username and display settings.

    Request body: {"username": "...", "settings": {...}}; settings are
    merged into the stored object.
    """
    try:
        profile = profile_service.update_profile(g.current_user.id, request.get_json(silent=True))
    except ProfileNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(profile.to_dict())
