from app.models.base import BaseModel, enum_column
from app.extensions import db
from app.enums import SetupStep, VerificationStatus
from app.state_machines import VERIFICATION_STATUS


class BrandVerificationRequest(BaseModel):
    __tablename__ = "brand_verification_requests"
    __state_machines__ = {"verification_status": VERIFICATION_STATUS}

    profile_id = db.Column(
        db.String(36), db.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    brand_name = db.Column(db.String(255), nullable=False)
    brand_category = db.Column(db.String(100))
    brand_website = db.Column(db.String(500))
    documents = db.Column(db.JSON, default=list)
    verification_status = enum_column(
        VerificationStatus, "verification_status", nullable=False, default=VerificationStatus.PENDING
    )
    admin_notes = db.Column(db.Text)
    reviewed_by = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=True)
    reviewed_at = db.Column(db.DateTime(timezone=True))

    profile = db.relationship("Profile", backref=db.backref("brand_verification_requests", lazy="dynamic"))


class SetupProgress(BaseModel):
    __tablename__ = "setup_progress"
    __table_args__ = (db.UniqueConstraint("profile_id", "step", name="uq_setup_progress_profile_step"),)

    profile_id = db.Column(
        db.String(36), db.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    step = enum_column(SetupStep, "setup_step", nullable=False)
    completed = db.Column(db.Boolean, default=False, nullable=False)
    completed_at = db.Column(db.DateTime(timezone=True))
    data = db.Column(db.JSON)
