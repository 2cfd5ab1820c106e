from app.enums import ListingStatus
from app.models.base import utcnow
from app.models.category import Category
from app.models.listing import Listing
from app.errors import ValidationFailed
from app.extensions import db
from app.utils.helpers import slugify


def _unique_slug(title, exclude_id=None):
    slug = slugify(title)
    base_slug = slug
    counter = 1
    while True:
        query = Listing.query.filter_by(slug=slug)
        if exclude_id:
            query = query.filter(Listing.id != exclude_id)
        if not query.first():
            return slug
        slug = f"{base_slug}-{counter}"
        counter += 1


class ListingService:
    """Listing operations, all executed through the caller's SecureSession"""

    @staticmethod
    def create_listing(gateway, seller_id: str, title: str, price, publish: bool = False, **kwargs) -> Listing:
        category_id = kwargs.get("category_id")
        if category_id and not db.session.get(Category, category_id):
            raise ValidationFailed("category_id", "Unknown category.")

        with gateway.atomic():
            listing = gateway.insert(
                Listing(
                    seller_id=seller_id,
                    title=title,
                    slug=_unique_slug(title),
                    price=price,
                    category_id=category_id,
                    description=kwargs.get("description"),
                    condition=kwargs.get("condition"),
                    size=kwargs.get("size"),
                    brand=kwargs.get("brand"),
                    status=ListingStatus.ACTIVE if publish else ListingStatus.DRAFT,
                )
            )
        return listing

    @staticmethod
    def update_listing(gateway, listing_id: str, **changes) -> Listing:
        with gateway.atomic():
            listing = gateway.get(Listing, listing_id, for_update=True)
            if listing.is_deleted:
                raise ValidationFailed("listing_id", "Listing has been removed.")
            if "title" in changes and changes["title"] != listing.title:
                changes["slug"] = _unique_slug(changes["title"], exclude_id=listing.id)
            gateway.update(listing, **changes)
        return listing

    @staticmethod
    def delete_listing(gateway, listing_id: str):
        """Drafts are removed; anything buyers may have seen is archived"""
        with gateway.atomic():
            listing = gateway.get(Listing, listing_id, for_update=True)
            if listing.status == ListingStatus.DRAFT:
                gateway.delete(listing)
                return None
            gateway.update(listing, status=ListingStatus.ARCHIVED, deleted_at=utcnow())
        return listing

    @staticmethod
    def get_listing(gateway, listing_id: str) -> Listing:
        return gateway.get(Listing, listing_id)

    @staticmethod
    def search_listings(gateway, search: str = None, category_id: str = None, seller_id: str = None,
                        status: str = None):
        """Visible listings matching the filters, newest first"""
        criteria = []
        if search:
            criteria.append(Listing.title.ilike(f"%{search}%"))
        if category_id:
            criteria.append(Listing.category_id == category_id)
        if seller_id:
            criteria.append(Listing.seller_id == seller_id)
        if status:
            criteria.append(Listing.status == ListingStatus(status))
        return gateway.select(Listing, *criteria, order_by=Listing.created_at.desc())
