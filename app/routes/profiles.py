from flask import Blueprint, request, jsonify
from app.services.profile_service import ProfileService
from app.schemas import (
    ProfileUpdateSchema,
    SocialMediaAccountSchema,
    SetupProgressSchema,
    BrandVerificationSchema,
)
from app.utils.decorators import principal_required, principal_optional
from app.utils.validators import validate_schema

profile_bp = Blueprint("profiles", __name__)


@profile_bp.route("/<username>", methods=["GET"])
@principal_optional
def get_profile(username, current_user, gateway):
    """Public profile by username"""
    profile = ProfileService.get_by_username(gateway, username)
    data = profile.to_dict()
    data["stats"] = profile.stats.to_dict() if profile.stats else None
    data["social_media_accounts"] = [a.to_dict() for a in profile.social_media_accounts]
    return jsonify({"profile": data}), 200


@profile_bp.route("/me", methods=["PATCH"])
@principal_required()
@validate_schema(ProfileUpdateSchema)
def update_profile(current_user, gateway):
    profile = ProfileService.update_profile(gateway, current_user.id, **request.validated_data)
    return jsonify({"message": "Profile updated", "profile": profile.to_dict()}), 200


@profile_bp.route("/me", methods=["DELETE"])
@principal_required()
def delete_profile(current_user, gateway):
    ProfileService.soft_delete_profile(gateway, current_user.id)
    return jsonify({"message": "Profile deleted"}), 200


@profile_bp.route("/me/social-accounts", methods=["POST"])
@principal_required()
@validate_schema(SocialMediaAccountSchema)
def add_social_account(current_user, gateway):
    account = ProfileService.add_social_account(gateway, current_user.id, **request.validated_data)
    return jsonify({"social_media_account": account.to_dict()}), 201


@profile_bp.route("/me/social-accounts/<account_id>", methods=["DELETE"])
@principal_required()
def remove_social_account(account_id, current_user, gateway):
    ProfileService.remove_social_account(gateway, account_id)
    return jsonify({"message": "Social media account removed"}), 200


# Onboarding
@profile_bp.route("/me/setup-progress", methods=["GET"])
@principal_required()
def get_setup_progress(current_user, gateway):
    return jsonify(ProfileService.get_setup_status(gateway, current_user.id)), 200


@profile_bp.route("/me/setup-progress", methods=["POST"])
@principal_required()
@validate_schema(SetupProgressSchema)
def record_setup_step(current_user, gateway):
    data = request.validated_data
    ProfileService.record_setup_step(
        gateway, current_user.id, data["step"], completed=data["completed"], data=data.get("data")
    )
    return jsonify(ProfileService.get_setup_status(gateway, current_user.id)), 200


@profile_bp.route("/me/brand-verification", methods=["GET"])
@principal_required()
def list_brand_verifications(current_user, gateway):
    rows = ProfileService.list_brand_verifications(gateway, current_user.id)
    return jsonify({"requests": [r.to_dict() for r in rows]}), 200


@profile_bp.route("/me/brand-verification", methods=["POST"])
@principal_required()
@validate_schema(BrandVerificationSchema)
def submit_brand_verification(current_user, gateway):
    request_row = ProfileService.submit_brand_verification(gateway, current_user.id, **request.validated_data)
    return jsonify({"message": "Verification submitted", "request": request_row.to_dict()}), 201
