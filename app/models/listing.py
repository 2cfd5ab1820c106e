from app.models.base import BaseModel, SoftDeleteMixin, enum_column
from app.extensions import db
from app.enums import ListingStatus
from app.state_machines import LISTING_STATUS

# Statuses any principal, including anonymous visitors, may read
PUBLIC_LISTING_STATUSES = frozenset({ListingStatus.ACTIVE, ListingStatus.RESERVED, ListingStatus.SOLD})

# Set and cleared only by order hooks; the seller cannot edit a listing in these states
ORDER_HELD_LISTING_STATUSES = frozenset({ListingStatus.RESERVED, ListingStatus.SOLD})


class Listing(BaseModel, SoftDeleteMixin):
    __tablename__ = "listings"
    __state_machines__ = {"status": LISTING_STATUS}

    seller_id = db.Column(
        db.String(36),
        db.ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    category_id = db.Column(
        db.String(36),
        db.ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    title = db.Column(db.String(255), nullable=False, index=True)
    slug = db.Column(db.String(255), unique=True, nullable=False)
    description = db.Column(db.Text)
    price = db.Column(db.Numeric(15, 2), nullable=False)
    condition = db.Column(db.String(50))
    size = db.Column(db.String(50))
    brand = db.Column(db.String(100))
    status = enum_column(ListingStatus, "listing_status", nullable=False, default=ListingStatus.DRAFT)

    seller = db.relationship("Profile", backref=db.backref("listings", lazy="dynamic"))

    @property
    def is_public(self) -> bool:
        return self.status in PUBLIC_LISTING_STATUSES and not self.is_deleted
