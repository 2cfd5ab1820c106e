from app.models.base import BaseModel, enum_column
from app.extensions import db
from decimal import Decimal
from app.enums import OrderStatus, PaymentStatus, TrackingStatus
from app.state_machines import ORDER_STATUS, PAYMENT_STATUS, TRACKING_STATUS

# A buyer may withdraw an order only before payment has gone through
BUYER_CANCELLABLE_STATUSES = frozenset({OrderStatus.PENDING_PAYMENT, OrderStatus.PAYMENT_PROCESSING})

# Statuses from which the seller drives fulfilment, and those it may set
SELLER_FULFILMENT_STATUSES = frozenset(
    {OrderStatus.PAID, OrderStatus.PREPARING, OrderStatus.SHIPPED, OrderStatus.IN_TRANSIT}
)
SELLER_SETTABLE_STATUSES = frozenset(
    {OrderStatus.PREPARING, OrderStatus.SHIPPED, OrderStatus.IN_TRANSIT, OrderStatus.DELIVERED}
)


class Order(BaseModel):
    __tablename__ = "orders"
    __state_machines__ = {
        "status": ORDER_STATUS,
        "payment_status": PAYMENT_STATUS,
        "tracking_status": TRACKING_STATUS,
    }

    order_number = db.Column(db.String(50), unique=True, nullable=False, index=True)
    buyer_id = db.Column(
        db.String(36), db.ForeignKey("profiles.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    seller_id = db.Column(
        db.String(36), db.ForeignKey("profiles.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    listing_id = db.Column(
        db.String(36), db.ForeignKey("listings.id", ondelete="SET NULL"), nullable=True, index=True
    )
    subtotal = db.Column(db.Numeric(15, 2), nullable=False)
    shipping_cost = db.Column(db.Numeric(15, 2), default=Decimal("0.00"), nullable=False)
    tax_amount = db.Column(db.Numeric(15, 2), default=Decimal("0.00"), nullable=False)
    discount_amount = db.Column(db.Numeric(15, 2), default=Decimal("0.00"), nullable=False)
    total_amount = db.Column(db.Numeric(15, 2), nullable=False)
    status = enum_column(OrderStatus, "order_status", nullable=False, default=OrderStatus.PENDING_PAYMENT)
    payment_status = enum_column(PaymentStatus, "payment_status", nullable=False, default=PaymentStatus.PENDING)
    tracking_status = enum_column(TrackingStatus, "tracking_status", nullable=True)
    tracking_number = db.Column(db.String(100))
    shipping_address = db.Column(db.Text)
    cancelled_at = db.Column(db.DateTime(timezone=True))
    shipped_at = db.Column(db.DateTime(timezone=True))
    delivered_at = db.Column(db.DateTime(timezone=True))
    completed_at = db.Column(db.DateTime(timezone=True))

    buyer = db.relationship("Profile", foreign_keys=[buyer_id])
    seller = db.relationship("Profile", foreign_keys=[seller_id])
    listing = db.relationship("Listing")
    transactions = db.relationship("Transaction", backref="order", lazy="dynamic")

    def calculate_total(self) -> Decimal:
        return (
            Decimal(self.subtotal or 0)
            + Decimal(self.shipping_cost or 0)
            + Decimal(self.tax_amount or 0)
            - Decimal(self.discount_amount or 0)
        )

    def can_cancel(self) -> bool:
        return self.status in BUYER_CANCELLABLE_STATUSES

    def is_party(self, profile_id) -> bool:
        return profile_id is not None and profile_id in (self.buyer_id, self.seller_id)


class Transaction(BaseModel):
    """Money movement for a paid order; the fee is computed by a write hook"""

    __tablename__ = "transactions"
    __state_machines__ = {"status": PAYMENT_STATUS}

    order_id = db.Column(
        db.String(36), db.ForeignKey("orders.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    buyer_id = db.Column(db.String(36), db.ForeignKey("profiles.id"), nullable=False)
    seller_id = db.Column(db.String(36), db.ForeignKey("profiles.id"), nullable=False)
    amount = db.Column(db.Numeric(15, 2), nullable=False)
    platform_fee = db.Column(db.Numeric(15, 2), nullable=False, default=Decimal("0.00"))
    seller_earnings = db.Column(db.Numeric(15, 2), nullable=False, default=Decimal("0.00"))
    status = enum_column(PaymentStatus, "transaction_payment_status", nullable=False, default=PaymentStatus.SUCCEEDED)
