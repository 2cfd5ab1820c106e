from decimal import Decimal
from app.enums import OrderStatus, UserRole
from app.extensions import db
from app.models.order import Order
from app.models.profile import Profile
from app.models.storage import StorageBucket, StorageObject
from app.models.user import User


class TestUserModel:
    """Test User model"""

    def test_set_password(self, app):
        user = User(email="test@test.com")
        user.set_password("password123")

        assert user.password_hash != "password123"
        assert user.check_password("password123")
        assert not user.check_password("wrongpassword")

    def test_role_is_single_source_of_privilege(self, app, buyer_user, admin_user):
        assert not buyer_user.is_admin
        assert admin_user.is_admin
        assert admin_user.has_role("admin")
        assert db.session.get(Profile, admin_user.id).is_admin
        assert db.session.get(Profile, admin_user.id).role == UserRole.ADMIN

    def test_to_dict_excludes_password(self, app, buyer_user):
        data = buyer_user.to_dict()
        assert "password_hash" not in data
        assert data["is_verified"] is True
        assert data["role"] == "user"


class TestOrderModel:
    def test_calculate_total(self):
        order = Order(
            subtotal=Decimal("100.00"),
            shipping_cost=Decimal("7.50"),
            tax_amount=Decimal("2.50"),
            discount_amount=Decimal("10.00"),
        )
        assert order.calculate_total() == Decimal("100.00")

    def test_can_cancel(self):
        assert Order(status=OrderStatus.PAYMENT_PROCESSING).can_cancel()
        assert not Order(status=OrderStatus.PAID).can_cancel()


class TestStorageModels:
    def test_path_owner(self):
        assert StorageObject(name="abc/photo.png").path_owner == "abc"
        assert StorageObject(name="photo.png").path_owner is None

    def test_bucket_accepts(self):
        bucket = StorageBucket(id="avatars", allowed_mime_types=["image/png"], file_size_limit=10)
        assert bucket.accepts("image/png")
        assert not bucket.accepts("text/html")
