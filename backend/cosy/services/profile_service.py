from __future__ import annotations

import json

from ..extensions import db
from ..models import Profile
from ..validation import ModelValidationPolicy, ValidationError, validate_payload


class ProfileNotFoundError(Exception):
    pass


# Capability flags and subscription fields are managed from the CLI only
SELF_SERVICE_POLICY = ModelValidationPolicy(writable_fields={"username"})

CAPABILITY_FLAGS = ("can_view_analysis", "can_view_history", "can_edit_transactions")


def get_profile(user_id: str) -> Profile:
    profile = db.session.get(Profile, user_id)
    if not profile:
        raise ProfileNotFoundError("Profile not found")
    return profile


def update_profile(user_id: str, payload: dict) -> Profile:
    """Update the caller's own username and display settings."""
    profile = get_profile(user_id)
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    payload = dict(payload)
    settings = payload.pop("settings", None)
    if settings is not None and not isinstance(settings, dict):
        raise ValidationError("settings must be an object")

    patch = validate_payload(model=Profile, payload=payload, policy=SELF_SERVICE_POLICY, partial=True)
    for key, value in patch.items():
        setattr(profile, key, value)

    if settings is not None:
        merged = profile.settings
        merged.update(settings)
        profile.settings_json = json.dumps(merged, sort_keys=True)

    db.session.commit()
    return profile


def set_capabilities(user_id: str, **flags: bool) -> Profile:
    profile = get_profile(user_id)
    for name, value in flags.items():
        if name not in CAPABILITY_FLAGS:
            raise ValidationError(f"Unknown capability: {name}")
        setattr(profile, name, bool(value))
    db.session.commit()
    return profile
