from flask import Blueprint, request, jsonify
from app.services.listing_service import ListingService
from app.schemas import ListingCreateSchema, ListingUpdateSchema
from app.utils.decorators import principal_required, principal_optional
from app.utils.validators import validate_schema, validate_pagination, paginate

listing_bp = Blueprint("listings", __name__)


@listing_bp.route("", methods=["GET"])
@principal_optional
def search_listings(current_user, gateway):
    """Browse listings; sellers also see their own drafts"""
    page, per_page = validate_pagination()
    rows = ListingService.search_listings(
        gateway,
        search=request.args.get("search"),
        category_id=request.args.get("category_id"),
        seller_id=request.args.get("seller_id"),
        status=request.args.get("status"),
    )
    items, total, pages = paginate(rows, page, per_page)
    return jsonify({"listings": [l.to_dict() for l in items], "total": total, "page": page, "pages": pages}), 200


@listing_bp.route("/<listing_id>", methods=["GET"])
@principal_optional
def get_listing(listing_id, current_user, gateway):
    listing = ListingService.get_listing(gateway, listing_id)
    return jsonify({"listing": listing.to_dict()}), 200


@listing_bp.route("", methods=["POST"])
@principal_required()
@validate_schema(ListingCreateSchema)
def create_listing(current_user, gateway):
    listing = ListingService.create_listing(gateway, seller_id=current_user.id, **request.validated_data)
    return jsonify({"message": "Listing created", "listing": listing.to_dict()}), 201


@listing_bp.route("/<listing_id>", methods=["PATCH"])
@principal_required()
@validate_schema(ListingUpdateSchema)
def update_listing(listing_id, current_user, gateway):
    listing = ListingService.update_listing(gateway, listing_id, **request.validated_data)
    return jsonify({"message": "Listing updated", "listing": listing.to_dict()}), 200


@listing_bp.route("/<listing_id>", methods=["DELETE"])
@principal_required()
def delete_listing(listing_id, current_user, gateway):
    listing = ListingService.delete_listing(gateway, listing_id)
    if listing is None:
        return jsonify({"message": "Listing deleted"}), 200
    return jsonify({"message": "Listing archived", "listing": listing.to_dict()}), 200
