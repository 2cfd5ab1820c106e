from flask import jsonify
from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from werkzeug.exceptions import HTTPException
from flask_jwt_extended.exceptions import JWTDecodeError, NoAuthorizationError, InvalidHeaderError
from app.errors import AuthorizationDenied, MarketplaceError


def register_error_handlers(app):
    """Register error handlers"""

    def _production():
        return app.config.get("APP_ENV") == "production"

    @app.errorhandler(MarketplaceError)
    def handle_marketplace_error(error):
        if isinstance(error, AuthorizationDenied):
            app.logger.info(f"Authorization denied: {error.reason}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(ValidationError)
    def handle_validation_error(error):
        return jsonify({"error": "Validation error", "messages": error.messages}), 400

    @app.errorhandler(400)
    def bad_request(error):
        return jsonify({"error": "Bad request"}), 400

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({"error": "Resource not found"}), 404

    @app.errorhandler(500)
    def internal_error(error):
        app.logger.error(f"Internal error: {error}")
        return jsonify({"error": "Internal server error"}), 500

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(error):
        app.logger.warning(f"Integrity error: {error.orig}")
        body = {"error": "Database integrity error"}
        if not _production():
            body["details"] = str(error.orig)
        return jsonify(body), 409

    @app.errorhandler(SQLAlchemyError)
    def handle_sqlalchemy_error(error):
        app.logger.error(f"Database error: {error}")
        return jsonify({"error": "Database error"}), 500

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        return jsonify({"error": error.description}), error.code

    @app.errorhandler(403)
    def forbidden(error):
        return jsonify({"error": "Forbidden"}), 403

    @app.errorhandler(401)
    def unauthorized(error):
        return jsonify({"error": "Unauthorized"}), 401

    @app.errorhandler(422)
    def unprocessable_entity(error):
        return jsonify({"error": "Unprocessable entity"}), 422

    @app.errorhandler(Exception)
    def handle_exception(error):
        app.logger.exception(f"Unhandled exception: {error}")
        body = {"error": "An unexpected error occurred"}
        if not _production():
            body["details"] = str(error)
        return jsonify(body), 500

    # JWT Error Handlers
    @app.errorhandler(NoAuthorizationError)
    def handle_no_authorization(error):
        return jsonify({"error": "Missing authorization header"}), 401

    @app.errorhandler(JWTDecodeError)
    def handle_jwt_decode_error(error):
        return jsonify({"error": "Invalid token"}), 422

    @app.errorhandler(InvalidHeaderError)
    def handle_invalid_header(error):
        return jsonify({"error": "Invalid authorization header"}), 422
