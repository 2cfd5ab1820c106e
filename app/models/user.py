from app.models.base import BaseModel, SoftDeleteMixin, enum_column
from app.extensions import db
from app.enums import UserRole
import bcrypt


class User(BaseModel, SoftDeleteMixin):
    """An authenticated principal. ``role`` is the only stored privilege."""

    __tablename__ = "users"

    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role = enum_column(UserRole, "user_role", nullable=False, default=UserRole.USER)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    email_confirmed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    last_sign_in_at = db.Column(db.DateTime(timezone=True), nullable=True)
    # Sign-up form data, read once by the bootstrap hook
    user_metadata = db.Column(db.JSON, default=dict)

    profile = db.relationship("Profile", backref="user", uselist=False)
    cart = db.relationship("ShoppingCart", backref="user", uselist=False)

    def set_password(self, password: str):
        self.password_hash = bcrypt.hashpw(
            password.encode("utf-8"), bcrypt.gensalt()
        ).decode("utf-8")

    def check_password(self, password: str) -> bool:
        return bcrypt.checkpw(
            password.encode("utf-8"), self.password_hash.encode("utf-8")
        )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_verified(self) -> bool:
        return self.email_confirmed_at is not None

    def has_role(self, role) -> bool:
        return self.role == UserRole(role)

    def to_dict(self, include_sensitive=False):
        data = super().to_dict()
        data["is_admin"] = self.is_admin
        data["is_verified"] = self.is_verified
        if not include_sensitive:
            data.pop("password_hash", None)
            data.pop("deleted_at", None)
        return data
