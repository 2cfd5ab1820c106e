import pytest
from decimal import Decimal
from app import create_app, db
from app.config import TestingConfig
from app.enums import UserRole
from app.models.base import utcnow
from app.models.category import Category
from app.schema_replay import create_storage_buckets
from app.security import Principal, secure_session, service_session
from app.services.auth_service import AuthService
from app.services.listing_service import ListingService

PASSWORD = "password123"


@pytest.fixture(scope="function")
def app():
    """Create application for testing"""
    app = create_app(TestingConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """Test client"""
    return app.test_client()


@pytest.fixture
def runner(app):
    """Test CLI runner"""
    return app.test_cli_runner()


def make_user(email, role=UserRole.USER, verified=True, **kwargs):
    """Register through the auth service so the bootstrap hooks run"""
    user, _ = AuthService.register_user(email, PASSWORD, **kwargs)
    gateway = service_session()
    with gateway.atomic():
        gateway.update(user, role=role, email_confirmed_at=utcnow() if verified else None)
    return user


def gateway_for(user):
    return secure_session(Principal.from_user(user))


@pytest.fixture
def as_user():
    """Factory: the SecureSession a user's requests would run with"""
    return gateway_for


# User fixtures
@pytest.fixture
def buyer_user(app):
    return make_user("buyer@test.com", full_name="Test Buyer")


@pytest.fixture
def seller_user(app):
    return make_user("seller@test.com", full_name="Test Seller")


@pytest.fixture
def other_user(app):
    return make_user("outsider@test.com", full_name="Test Outsider")


@pytest.fixture
def moderator_user(app):
    return make_user("moderator@test.com", role=UserRole.MODERATOR)


@pytest.fixture
def admin_user(app):
    return make_user("admin@test.com", role=UserRole.ADMIN)


# Auth header fixtures
def _login(client, email):
    response = client.post("/api/auth/login", json={"email": email, "password": PASSWORD})
    assert response.status_code == 200, f"Login failed: {response.json}"
    return {"Authorization": f"Bearer {response.json['access_token']}"}


@pytest.fixture
def buyer_headers(client, buyer_user):
    return _login(client, "buyer@test.com")


@pytest.fixture
def seller_headers(client, seller_user):
    return _login(client, "seller@test.com")


@pytest.fixture
def other_headers(client, other_user):
    return _login(client, "outsider@test.com")


@pytest.fixture
def admin_headers(client, admin_user):
    return _login(client, "admin@test.com")


# Data fixtures
@pytest.fixture
def category(app):
    category = Category(name="Women", slug="women", icon="shirt", sort_order=1)
    db.session.add(category)
    db.session.commit()
    return category


@pytest.fixture
def buckets(app):
    create_storage_buckets(db.engine)


@pytest.fixture
def listing(app, seller_user, category):
    """An active listing owned by seller_user"""
    return ListingService.create_listing(
        gateway_for(seller_user),
        seller_id=seller_user.id,
        title="Silk midi dress",
        price=Decimal("120.00"),
        publish=True,
        category_id=category.id,
        condition="like_new",
        size="M",
    )
