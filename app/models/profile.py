from app.models.base import BaseModel, SoftDeleteMixin, enum_column
from app.extensions import db
from app.enums import AccountType


class Profile(BaseModel, SoftDeleteMixin):
    """Marketplace attributes of a principal; shares the principal's id."""

    __tablename__ = "profiles"

    id = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="RESTRICT"), primary_key=True)
    username = db.Column(db.String(30), unique=True, nullable=False, index=True)
    full_name = db.Column(db.String(255))
    bio = db.Column(db.Text)
    avatar_url = db.Column(db.String(500))
    cover_url = db.Column(db.String(500))
    location = db.Column(db.String(255))
    account_type = enum_column(AccountType, "account_type", nullable=False, default=AccountType.PERSONAL)
    is_seller = db.Column(db.Boolean, default=False, nullable=False)
    brand_name = db.Column(db.String(255))
    brand_category = db.Column(db.String(100))
    brand_website = db.Column(db.String(500))
    setup_completed = db.Column(db.Boolean, default=False, nullable=False)
    setup_completed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    social_media_accounts = db.relationship(
        "SocialMediaAccount", backref="profile", lazy="dynamic", cascade="all, delete-orphan"
    )
    stats = db.relationship("ProfileStats", backref="profile", uselist=False)

    @property
    def role(self):
        return self.user.role

    @property
    def is_admin(self) -> bool:
        return self.user.is_admin

    def to_dict(self):
        data = super().to_dict()
        data["role"] = self.role.value
        data["is_admin"] = self.is_admin
        return data


class SocialMediaAccount(BaseModel):
    __tablename__ = "social_media_accounts"

    profile_id = db.Column(
        db.String(36), db.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    platform = db.Column(db.String(50), nullable=False)
    username = db.Column(db.String(100), nullable=False)
    url = db.Column(db.String(500))


class ProfileStats(BaseModel):
    """Denormalised counters, zeroed when the principal is created."""

    __tablename__ = "profile_stats"

    profile_id = db.Column(
        db.String(36), db.ForeignKey("profiles.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    listings_count = db.Column(db.Integer, default=0, nullable=False)
    sales_count = db.Column(db.Integer, default=0, nullable=False)
    purchases_count = db.Column(db.Integer, default=0, nullable=False)
    followers_count = db.Column(db.Integer, default=0, nullable=False)
    following_count = db.Column(db.Integer, default=0, nullable=False)
    rating_average = db.Column(db.Numeric(3, 2), default=0, nullable=False)
    rating_count = db.Column(db.Integer, default=0, nullable=False)
