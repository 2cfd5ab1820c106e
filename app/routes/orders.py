from flask import Blueprint, request, jsonify
from app.services.order_service import OrderService
from app.schemas import OrderCreateSchema, OrderStatusSchema
from app.utils.decorators import principal_required
from app.utils.validators import validate_schema, validate_pagination, paginate

order_bp = Blueprint("orders", __name__)


@order_bp.route("", methods=["POST"])
@principal_required()
@validate_schema(OrderCreateSchema)
def create_order(current_user, gateway):
    """Create new order"""
    data = request.validated_data
    order = OrderService.create_order(
        gateway,
        buyer_id=current_user.id,
        listing_id=data["listing_id"],
        shipping_address=data["shipping_address"],
        shipping_cost=data["shipping_cost"],
    )
    return (
        jsonify({"message": "Order created successfully, waiting for payment", "order": order.to_dict()}),
        201,
    )


@order_bp.route("", methods=["GET"])
@principal_required()
def get_orders(current_user, gateway):
    """Orders the caller bought or sold"""
    page, per_page = validate_pagination()
    rows = OrderService.get_orders(gateway, side=request.args.get("side"), status=request.args.get("status"))
    items, total, pages = paginate(rows, page, per_page)
    return jsonify({"orders": [o.to_dict() for o in items], "total": total, "page": page, "pages": pages}), 200


@order_bp.route("/<order_id>", methods=["GET"])
@principal_required()
def get_order(order_id, current_user, gateway):
    """Get order detail"""
    order = OrderService.get_order_by_id(gateway, order_id)
    data = order.to_dict()
    data["transactions"] = [t.to_dict() for t in OrderService.get_transactions(gateway, order.id)]
    return jsonify({"order": data}), 200


@order_bp.route("/<order_id>/cancel", methods=["POST"])
@principal_required()
def cancel_order(order_id, current_user, gateway):
    order = OrderService.cancel_order(gateway, order_id)
    return jsonify({"message": "Order cancelled", "order": order.to_dict()}), 200


@order_bp.route("/<order_id>/confirm-receipt", methods=["POST"])
@principal_required()
def confirm_receipt(order_id, current_user, gateway):
    order = OrderService.confirm_receipt(gateway, order_id)
    return jsonify({"message": "Order completed", "order": order.to_dict()}), 200


@order_bp.route("/<order_id>/status", methods=["PUT"])
@principal_required()
@validate_schema(OrderStatusSchema)
def update_order_status(order_id, current_user, gateway):
    """Seller fulfilment steps; admins may set any legal status"""
    order = OrderService.update_order_status(gateway, order_id, **request.validated_data)
    return jsonify({"message": "Order status updated", "order": order.to_dict()}), 200
