# backend/cosy/__init__.py
import hmac

from flask import Flask, request, jsonify

from .config import Config
from .extensions import db, migrate

# Reachable without the public API key (enrollment links open it directly)
PUBLIC_PATHS = {"/api/invite/validate"}


def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.stores import stores_bp
    from .routes.transactions import transactions_bp
    from .routes.directory import directory_bp
    from .routes.reports import reports_bp
    from .routes.invites import invites_bp
    from .routes.profile import profile_bp
    from .routes.overtime import overtime_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(stores_bp)
    app.register_blueprint(transactions_bp)
    app.register_blueprint(directory_bp)
    app.register_blueprint(reports_bp)
    app.register_blueprint(invites_bp)
    app.register_blueprint(profile_bp)
    app.register_blueprint(overtime_bp)

    @app.before_request
    def check_api_key():
        expected = app.config.get("PUBLIC_API_KEY")
        if not expected or request.method == "OPTIONS":
            return None
        if not request.path.startswith("/api/") or request.path in PUBLIC_PATHS:
            return None
        supplied = request.headers.get("apikey", "")
        if not hmac.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8")):
            return jsonify({"error": "Invalid API key"}), 401
        return None

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allowed_origins = {
            app.config.get("APP_URL"),
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        }
        if origin and origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type, apikey"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
