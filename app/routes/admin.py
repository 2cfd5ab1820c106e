from flask import Blueprint, request, jsonify
from app.services.admin_service import AdminService
from app.services.profile_service import ProfileService
from app.schemas import PromoteSchema, BrandReviewSchema
from app.utils.decorators import principal_required
from app.utils.validators import validate_schema, validate_pagination, paginate
from app.enums import UserRole

admin_bp = Blueprint("admin", __name__)


@admin_bp.route("/promote", methods=["POST"])
@principal_required(UserRole.ADMIN)
@validate_schema(PromoteSchema)
def promote(current_user, gateway):
    user = AdminService.promote_to_admin(gateway, **request.validated_data)
    return jsonify({"message": "User promoted to admin", "user": user.to_dict()}), 200


@admin_bp.route("/revoke", methods=["POST"])
@principal_required(UserRole.ADMIN)
@validate_schema(PromoteSchema)
def revoke(current_user, gateway):
    user = AdminService.revoke_admin(gateway, **request.validated_data)
    return jsonify({"message": "Admin role revoked", "user": user.to_dict()}), 200


@admin_bp.route("/audit-log", methods=["GET"])
@principal_required(UserRole.ADMIN)
def audit_log(current_user, gateway):
    page, per_page = validate_pagination()
    rows = AdminService.list_audit_log(gateway, entity_type=request.args.get("entity_type"))
    items, total, pages = paginate(rows, page, per_page)
    return jsonify({"entries": [e.to_dict() for e in items], "total": total, "page": page, "pages": pages}), 200


@admin_bp.route("/approvals", methods=["GET"])
@principal_required(UserRole.ADMIN)
def approvals(current_user, gateway):
    rows = AdminService.list_approvals(gateway, target_user_id=request.args.get("target_user_id"))
    return jsonify({"approvals": [a.to_dict() for a in rows]}), 200


@admin_bp.route("/brand-verifications", methods=["GET"])
@principal_required(UserRole.ADMIN)
def brand_verifications(current_user, gateway):
    rows = ProfileService.list_brand_verifications(gateway)
    status = request.args.get("status")
    if status:
        rows = [r for r in rows if r.verification_status.value == status]
    return jsonify({"requests": [r.to_dict() for r in rows]}), 200


@admin_bp.route("/brand-verifications/<request_id>", methods=["PUT"])
@principal_required(UserRole.ADMIN)
@validate_schema(BrandReviewSchema)
def review_brand_verification(request_id, current_user, gateway):
    data = request.validated_data
    reviewed = AdminService.review_brand_verification(
        gateway, request_id, data["status"], admin_notes=data.get("admin_notes")
    )
    return jsonify({"request": reviewed.to_dict()}), 200
