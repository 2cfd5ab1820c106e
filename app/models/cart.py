from app.models.base import BaseModel
from app.extensions import db


class ShoppingCart(BaseModel):
    """One cart per principal, created empty at bootstrap"""

    __tablename__ = "shopping_carts"

    user_id = db.Column(
        db.String(36),
        db.ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )

    items = db.relationship(
        "CartItem", backref="cart", lazy="dynamic", cascade="all, delete-orphan"
    )


class CartItem(BaseModel):
    __tablename__ = "cart_items"

    cart_id = db.Column(
        db.String(36),
        db.ForeignKey("shopping_carts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    listing_id = db.Column(
        db.String(36),
        db.ForeignKey("listings.id", ondelete="CASCADE"),
        nullable=False,
    )
    quantity = db.Column(db.Integer, default=1, nullable=False)
