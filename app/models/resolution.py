from app.models.base import BaseModel, enum_column
from app.extensions import db
from app.enums import DisputeStatus, RefundStatus, ReturnStatus
from app.state_machines import DISPUTE_STATUS, REFUND_STATUS, RETURN_STATUS


class Dispute(BaseModel):
    __tablename__ = "disputes"
    __state_machines__ = {"status": DISPUTE_STATUS}

    order_id = db.Column(
        db.String(36), db.ForeignKey("orders.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    initiator_id = db.Column(db.String(36), db.ForeignKey("profiles.id"), nullable=False, index=True)
    respondent_id = db.Column(db.String(36), db.ForeignKey("profiles.id"), nullable=False, index=True)
    reason = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text)
    status = enum_column(DisputeStatus, "dispute_status", nullable=False, default=DisputeStatus.OPEN)
    resolution = db.Column(db.Text)
    resolved_at = db.Column(db.DateTime(timezone=True))

    order = db.relationship("Order", backref=db.backref("disputes", lazy="dynamic"))

    def is_party(self, profile_id) -> bool:
        return profile_id is not None and profile_id in (self.initiator_id, self.respondent_id)


class Return(BaseModel):
    __tablename__ = "returns"
    __state_machines__ = {"status": RETURN_STATUS}

    order_id = db.Column(
        db.String(36), db.ForeignKey("orders.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    buyer_id = db.Column(db.String(36), db.ForeignKey("profiles.id"), nullable=False)
    seller_id = db.Column(db.String(36), db.ForeignKey("profiles.id"), nullable=False)
    reason = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text)
    status = enum_column(ReturnStatus, "return_status", nullable=False, default=ReturnStatus.REQUESTED)
    tracking_number = db.Column(db.String(100))

    order = db.relationship("Order", backref=db.backref("returns", lazy="dynamic"))


class RefundRequest(BaseModel):
    __tablename__ = "refund_requests"
    __state_machines__ = {"status": REFUND_STATUS}

    order_id = db.Column(
        db.String(36), db.ForeignKey("orders.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    buyer_id = db.Column(db.String(36), db.ForeignKey("profiles.id"), nullable=False)
    seller_id = db.Column(db.String(36), db.ForeignKey("profiles.id"), nullable=False)
    amount = db.Column(db.Numeric(15, 2), nullable=False)
    reason = db.Column(db.Text)
    status = enum_column(RefundStatus, "refund_status", nullable=False, default=RefundStatus.PENDING)

    order = db.relationship("Order", backref=db.backref("refund_requests", lazy="dynamic"))
