import logging

from flask import Flask, jsonify
from .extensions import db, migrate, jwt, ma
from .config import Config


def create_app(config_class=Config):

    app = Flask(__name__)
    app.config.from_object(config_class)

    logging.basicConfig(
        level=app.config["LOG_LEVEL"],
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )

    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    ma.init_app(app)

    from app import models  # noqa: F401  registers every table on the metadata
    from app.routes import register_blueprints
    from app.utils.error_handlers import register_error_handlers

    register_blueprints(app)
    register_error_handlers(app)

    # Register JWT error handlers
    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return jsonify({"error": "Token has expired"}), 401

    @jwt.invalid_token_loader
    def invalid_token_callback(error):
        return jsonify({"error": "Invalid token"}), 422

    @jwt.unauthorized_loader
    def missing_token_callback(error):
        return jsonify({"error": "Missing authorization header"}), 401

    # Single-purpose tokens (email verification) never authenticate a request
    @jwt.token_verification_loader
    def reject_purpose_tokens(jwt_header, jwt_data):
        return "purpose" not in jwt_data

    @jwt.token_verification_failed_loader
    def purpose_token_callback(jwt_header, jwt_data):
        return jsonify({"error": "Invalid token"}), 401

    @app.route("/health")
    def health():
        return {"status": "healthy"}, 200

    return app
