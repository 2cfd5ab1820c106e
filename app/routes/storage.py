from flask import Blueprint, request, jsonify
from app.services.storage_service import StorageService
from app.schemas import StorageObjectSchema
from app.utils.decorators import principal_required, principal_optional
from app.utils.validators import validate_schema

storage_bp = Blueprint("storage", __name__)


@storage_bp.route("/<bucket_id>", methods=["GET"])
@principal_optional
def list_objects(bucket_id, current_user, gateway):
    rows = StorageService.list_objects(gateway, bucket_id, prefix=request.args.get("prefix"))
    return jsonify({"objects": [o.to_dict() for o in rows]}), 200


@storage_bp.route("", methods=["POST"])
@principal_required()
@validate_schema(StorageObjectSchema)
def upload(current_user, gateway):
    """Register an uploaded object's metadata under ``<user id>/<file>``"""
    data = request.validated_data
    stored = StorageService.upload(gateway, data["bucket"], data["name"], data["mime_type"], data["size"])
    return jsonify({"object": stored.to_dict()}), 201


@storage_bp.route("/objects/<object_id>", methods=["DELETE"])
@principal_required()
def delete_object(object_id, current_user, gateway):
    StorageService.delete_object(gateway, object_id)
    return jsonify({"message": "Object deleted"}), 200
