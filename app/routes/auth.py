from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity, create_access_token
from app.services.auth_service import AuthService
from app.schemas import RegistrationSchema, LoginSchema, EmailVerificationSchema
from app.utils.decorators import load_active_user, principal_required
from app.utils.validators import validate_schema

auth_bp = Blueprint("auth", __name__)


@auth_bp.route("/register", methods=["POST"])
@validate_schema(RegistrationSchema)
def register():
    """Register a personal or brand account"""
    data = dict(request.validated_data)
    data.pop("accept_terms", None)
    user, verification_token = AuthService.register_user(**data)

    return (
        jsonify(
            {
                "message": "Account created, check your email to verify it",
                "status": "pending_email_verification",
                "user": user.to_dict(),
                "verification_token": verification_token,
            }
        ),
        201,
    )


@auth_bp.route("/verify-email", methods=["POST"])
@validate_schema(EmailVerificationSchema)
def verify_email():
    user = AuthService.confirm_email(request.validated_data["token"])
    return jsonify({"message": "Email verified", "user": user.to_dict()}), 200


@auth_bp.route("/login", methods=["POST"])
@validate_schema(LoginSchema)
def login():
    """User login"""
    try:
        data = request.validated_data
        result = AuthService.login_user(**data)
        return jsonify(result), 200
    except ValueError as e:
        return jsonify({"error": str(e)}), 401


@auth_bp.route("/refresh", methods=["POST"])
@jwt_required(refresh=True)
def refresh():
    """Refresh access token"""
    user = load_active_user(get_jwt_identity())
    if user is None or not user.is_verified:
        return jsonify({"error": "User not found or inactive"}), 403
    access_token = create_access_token(identity=user.id)
    return jsonify({"access_token": access_token}), 200


@auth_bp.route("/me", methods=["GET"])
@principal_required()
def get_me(current_user, gateway):
    """Get current user info"""
    data = current_user.to_dict()
    if current_user.profile is not None:
        data["profile"] = current_user.profile.to_dict()
    return jsonify({"user": data}), 200
