from flask import Blueprint, jsonify
from app.services.layout_service import LayoutService
from app.utils.decorators import principal_optional

layout_bp = Blueprint("layout", __name__)


@layout_bp.route("", methods=["GET"])
@principal_optional
def get_layout(current_user, gateway):
    """Session and navigation categories for the page shell"""
    return jsonify(LayoutService.load_layout(gateway)), 200
