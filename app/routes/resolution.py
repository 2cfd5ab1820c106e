from flask import Blueprint, request, jsonify
from app.services.resolution_service import DisputeService, RefundService, ReturnService
from app.schemas import (
    DisputeCreateSchema,
    DisputeUpdateSchema,
    RefundCreateSchema,
    RefundUpdateSchema,
    ReturnCreateSchema,
    ReturnUpdateSchema,
)
from app.utils.decorators import principal_required
from app.utils.validators import validate_schema

dispute_bp = Blueprint("disputes", __name__)
return_bp = Blueprint("returns", __name__)
refund_bp = Blueprint("refunds", __name__)


# Disputes
@dispute_bp.route("", methods=["GET"])
@principal_required()
def list_disputes(current_user, gateway):
    rows = DisputeService.list_disputes(gateway, status=request.args.get("status"))
    return jsonify({"disputes": [d.to_dict() for d in rows]}), 200


@dispute_bp.route("", methods=["POST"])
@principal_required()
@validate_schema(DisputeCreateSchema)
def open_dispute(current_user, gateway):
    dispute = DisputeService.open_dispute(gateway, **request.validated_data)
    return jsonify({"message": "Dispute opened", "dispute": dispute.to_dict()}), 201


@dispute_bp.route("/<dispute_id>", methods=["PUT"])
@principal_required()
@validate_schema(DisputeUpdateSchema)
def update_dispute(dispute_id, current_user, gateway):
    dispute = DisputeService.update_dispute(gateway, dispute_id, **request.validated_data)
    return jsonify({"dispute": dispute.to_dict()}), 200


# Returns
@return_bp.route("", methods=["GET"])
@principal_required()
def list_returns(current_user, gateway):
    return jsonify({"returns": [r.to_dict() for r in ReturnService.list_returns(gateway)]}), 200


@return_bp.route("", methods=["POST"])
@principal_required()
@validate_schema(ReturnCreateSchema)
def request_return(current_user, gateway):
    return_request = ReturnService.request_return(gateway, **request.validated_data)
    return jsonify({"message": "Return requested", "return": return_request.to_dict()}), 201


@return_bp.route("/<return_id>", methods=["PUT"])
@principal_required()
@validate_schema(ReturnUpdateSchema)
def update_return(return_id, current_user, gateway):
    return_request = ReturnService.update_return(gateway, return_id, **request.validated_data)
    return jsonify({"return": return_request.to_dict()}), 200


# Refunds
@refund_bp.route("", methods=["GET"])
@principal_required()
def list_refunds(current_user, gateway):
    return jsonify({"refunds": [r.to_dict() for r in RefundService.list_refunds(gateway)]}), 200


@refund_bp.route("", methods=["POST"])
@principal_required()
@validate_schema(RefundCreateSchema)
def request_refund(current_user, gateway):
    refund = RefundService.request_refund(gateway, **request.validated_data)
    return jsonify({"message": "Refund requested", "refund": refund.to_dict()}), 201


@refund_bp.route("/<refund_id>", methods=["PUT"])
@principal_required()
@validate_schema(RefundUpdateSchema)
def update_refund(refund_id, current_user, gateway):
    refund = RefundService.update_refund(gateway, refund_id, **request.validated_data)
    return jsonify({"refund": refund.to_dict()}), 200
