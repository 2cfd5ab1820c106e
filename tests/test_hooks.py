import pytest
from datetime import datetime, timezone
from decimal import Decimal
from app.extensions import db
from app.enums import AdminAction, ListingStatus, OrderStatus, PaymentStatus, SetupStep, UserRole
from app.errors import AuthorizationDenied, IntegrityConflict, ValidationFailed
from app.hooks import AFTER_INSERT, BEFORE_UPDATE, HookRegistry
from app.hooks.rules import hooks
from app.models.admin import AdminApproval
from app.models.cart import ShoppingCart
from app.models.listing import Listing
from app.models.order import Order, Transaction
from app.models.profile import Profile, ProfileStats
from app.models.user import User
from app.security import service_session
from app.services.auth_service import AuthService
from app.services.conversation_service import ConversationService
from app.services.order_service import OrderService
from app.services.profile_service import ProfileService
from app.utils import helpers


def _order(buyer, seller, **kwargs):
    fields = dict(buyer_id=buyer.id, seller_id=seller.id, subtotal=Decimal("50.00"))
    fields.update(kwargs)
    return Order(**fields)


class TestHookRegistry:
    def test_wildcard_hooks_run_first(self):
        registry = HookRegistry()
        calls = []

        @registry.register("things", AFTER_INSERT)
        def specific(instance, ctx):
            calls.append("specific")

        @registry.register("*", AFTER_INSERT)
        def everywhere(instance, ctx):
            calls.append("everywhere")

        assert [fn.__name__ for fn in registry.hooks_for("things", AFTER_INSERT)] == ["everywhere", "specific"]

    def test_unknown_event_rejected(self):
        with pytest.raises(ValueError):
            HookRegistry().register("things", "after_select")

    def test_installed_hooks_are_enumerable(self):
        installed = {(table, event, name) for table, event, name in hooks.describe()}
        assert ("users", "after_insert", "bootstrap_principal") in installed
        assert ("orders", "before_insert", "assign_order_number") in installed
        assert ("*", BEFORE_UPDATE, "touch_updated_at") in installed


class TestPrincipalBootstrap:
    def test_profile_cart_and_stats_created(self, app):
        user, _ = AuthService.register_user("jane.doe@example.com", "password123", full_name="Jane Doe")

        profile = db.session.get(Profile, user.id)
        assert profile.username == "jane_doe"
        assert profile.full_name == "Jane Doe"
        assert ShoppingCart.query.filter_by(user_id=user.id).count() == 1

        stats = ProfileStats.query.filter_by(profile_id=user.id).one()
        assert (stats.listings_count, stats.sales_count, stats.purchases_count) == (0, 0, 0)

    def test_username_deduplicated(self, app):
        first, _ = AuthService.register_user("sam@one.com", "password123")
        second, _ = AuthService.register_user("sam@two.com", "password123")

        assert db.session.get(Profile, first.id).username == "sam"
        assert db.session.get(Profile, second.id).username == "sam1"

    def test_bootstrap_failure_rolls_back_principal(self, app, monkeypatch):
        def broken_stats(**kwargs):
            raise RuntimeError("stats table unavailable")

        monkeypatch.setattr("app.hooks.rules.ProfileStats", broken_stats)

        with pytest.raises(RuntimeError):
            AuthService.register_user("atomic@test.com", "password123")

        assert User.query.filter_by(email="atomic@test.com").first() is None
        assert Profile.query.count() == 0
        assert ShoppingCart.query.count() == 0


class TestTimestampsAndRoles:
    def test_updated_at_is_server_assigned(self, app, buyer_user, as_user):
        gateway = as_user(buyer_user)
        with gateway.atomic():
            profile = gateway.get(Profile, buyer_user.id)
            gateway.update(profile, bio="Thrifting since 2010", updated_at=datetime(2000, 1, 1, tzinfo=timezone.utc))

        assert db.session.get(Profile, buyer_user.id).updated_at.year != 2000

    def test_user_cannot_change_own_role(self, app, buyer_user, as_user):
        gateway = as_user(buyer_user)
        with pytest.raises(AuthorizationDenied):
            with gateway.atomic():
                user = gateway.get(User, buyer_user.id)
                gateway.update(user, role=UserRole.ADMIN)

        assert db.session.get(User, buyer_user.id).role == UserRole.USER

    def test_id_is_read_only(self, app, buyer_user, as_user):
        gateway = as_user(buyer_user)
        with pytest.raises(ValidationFailed):
            with gateway.atomic():
                gateway.update(gateway.get(Profile, buyer_user.id), id="someone-else")

    def test_append_only_even_for_service(self, app, admin_user):
        gateway = service_session()
        with gateway.atomic():
            approval = gateway.insert(
                AdminApproval(target_user_id=admin_user.id, action=AdminAction.APPROVE, entity_type="user_role")
            )

        with pytest.raises(AuthorizationDenied):
            with gateway.atomic():
                gateway.update(approval, notes="edited")
        with pytest.raises(AuthorizationDenied):
            with gateway.atomic():
                gateway.delete(approval)


class TestSetupCompletion:
    REQUIRED = [SetupStep.PROFILE_INFO, SetupStep.AVATAR, SetupStep.PAYMENT_METHOD, SetupStep.SHIPPING_ADDRESS]

    def test_completes_once_all_required_steps_done(self, app, buyer_user, as_user):
        gateway = as_user(buyer_user)
        for step in self.REQUIRED[:-1]:
            ProfileService.record_setup_step(gateway, buyer_user.id, step.value)
        ProfileService.record_setup_step(gateway, buyer_user.id, SetupStep.SOCIAL_LINKS.value)
        assert not db.session.get(Profile, buyer_user.id).setup_completed

        ProfileService.record_setup_step(gateway, buyer_user.id, SetupStep.SHIPPING_ADDRESS.value)
        profile = db.session.get(Profile, buyer_user.id)
        assert profile.setup_completed
        assert profile.setup_completed_at is not None

    def test_completion_is_idempotent(self, app, buyer_user, as_user):
        gateway = as_user(buyer_user)
        for step in self.REQUIRED:
            ProfileService.record_setup_step(gateway, buyer_user.id, step.value)
        first_completed_at = db.session.get(Profile, buyer_user.id).setup_completed_at

        ProfileService.record_setup_step(gateway, buyer_user.id, SetupStep.AVATAR.value)
        ProfileService.record_setup_step(gateway, buyer_user.id, SetupStep.AVATAR.value, data={"url": "x"})

        profile = db.session.get(Profile, buyer_user.id)
        assert profile.setup_completed
        assert profile.setup_completed_at == first_completed_at

    def test_cannot_record_steps_for_someone_else(self, app, buyer_user, other_user, as_user):
        with pytest.raises(AuthorizationDenied):
            ProfileService.record_setup_step(as_user(other_user), buyer_user.id, SetupStep.AVATAR.value)


class TestOrderNumbering:
    def test_unique_under_forced_collisions(self, app, buyer_user, seller_user, monkeypatch):
        suffixes = []
        for i in range(100):
            if i:
                suffixes.append(f"{i - 1:04d}")
            suffixes.append(f"{i:04d}")
        feed = iter(suffixes)
        monkeypatch.setattr(helpers, "random_suffix", lambda length=4: next(feed))

        gateway = service_session()
        numbers = []
        for _ in range(100):
            with gateway.atomic():
                numbers.append(gateway.insert(_order(buyer_user, seller_user)).order_number)

        assert len(numbers) == 100
        assert len(set(numbers)) == 100
        assert all(n.startswith("ORD-") for n in numbers)

    def test_gives_up_after_bounded_retries(self, app, buyer_user, seller_user, monkeypatch):
        monkeypatch.setattr(helpers, "random_suffix", lambda length=4: "0042")
        gateway = service_session()
        with gateway.atomic():
            gateway.insert(_order(buyer_user, seller_user))

        with pytest.raises(IntegrityConflict):
            with gateway.atomic():
                gateway.insert(_order(buyer_user, seller_user))
        assert Order.query.count() == 1

    def test_retries_number_committed_concurrently(self, app, buyer_user, seller_user, listing, as_user,
                                                     monkeypatch):
        feed = iter(["ORD-20261017-0001", "ORD-20261017-0001", "ORD-20261017-0002"])
        monkeypatch.setattr("app.hooks.rules.generate_order_number", lambda: next(feed))
        with service_session().atomic() as gateway:
            gateway.insert(_order(buyer_user, seller_user))

        # the row exists but this transaction's lookup misses it, as under a race
        monkeypatch.setattr("app.hooks.rules.order_number_taken", lambda session, candidate: False)
        order = OrderService.create_order(as_user(buyer_user), buyer_user.id, listing.id, "1 Main St, Springfield")

        assert order.order_number == "ORD-20261017-0002"
        assert Order.query.count() == 2
        assert db.session.get(Listing, listing.id).status == ListingStatus.RESERVED

    def test_concurrent_collisions_give_up_after_bounded_retries(self, app, buyer_user, seller_user, listing,
                                                                  as_user, monkeypatch):
        monkeypatch.setattr("app.hooks.rules.generate_order_number", lambda: "ORD-20261017-0001")
        with service_session().atomic() as gateway:
            gateway.insert(_order(buyer_user, seller_user))

        monkeypatch.setattr("app.hooks.rules.order_number_taken", lambda session, candidate: False)
        with pytest.raises(IntegrityConflict) as exc:
            OrderService.create_order(as_user(buyer_user), buyer_user.id, listing.id, "1 Main St, Springfield")

        assert "Could not allocate identifier" in str(exc.value)
        assert Order.query.count() == 1
        assert db.session.get(Listing, listing.id).status == ListingStatus.ACTIVE


class TestOrderIntegrity:
    def test_total_is_derived(self, app, buyer_user, seller_user):
        gateway = service_session()
        with gateway.atomic():
            order = gateway.insert(
                _order(
                    buyer_user,
                    seller_user,
                    shipping_cost=Decimal("5.00"),
                    tax_amount=Decimal("2.50"),
                    discount_amount=Decimal("7.50"),
                    total_amount=Decimal("1.00"),
                )
            )
        assert order.total_amount == Decimal("50.00")

    @pytest.mark.parametrize(
        "overrides,field",
        [
            ({"shipping_cost": Decimal("-1.00")}, "shipping_cost"),
            ({"discount_amount": Decimal("80.00")}, "discount_amount"),
        ],
    )
    def test_rejects_bad_amounts(self, app, buyer_user, seller_user, overrides, field):
        gateway = service_session()
        with pytest.raises(ValidationFailed) as exc:
            with gateway.atomic():
                gateway.insert(_order(buyer_user, seller_user, **overrides))
        assert exc.value.field == field

    def test_buyer_must_differ_from_seller(self, app, buyer_user):
        with pytest.raises(ValidationFailed):
            with service_session().atomic() as gateway:
                gateway.insert(_order(buyer_user, buyer_user))

    def test_illegal_transition_rejected_even_for_service(self, app, buyer_user, seller_user):
        gateway = service_session()
        with gateway.atomic():
            order = gateway.insert(_order(buyer_user, seller_user))

        with pytest.raises(ValidationFailed):
            with gateway.atomic():
                gateway.update(order, status=OrderStatus.SHIPPED)
        assert db.session.get(Order, order.id).status == OrderStatus.PENDING_PAYMENT

    def test_unknown_status_rejected(self, app, buyer_user, seller_user):
        with pytest.raises(ValidationFailed):
            with service_session().atomic() as gateway:
                gateway.insert(_order(buyer_user, seller_user, status="lost"))

    def test_paid_order_gets_transaction_with_fee(self, app, buyer_user, listing, as_user):
        order = OrderService.create_order(
            as_user(buyer_user), buyer_user.id, listing.id, "1 Main St, Springfield"
        )
        OrderService.record_payment_event(order.id, OrderStatus.PAYMENT_PROCESSING.value)
        OrderService.record_payment_event(order.id, OrderStatus.PAID.value)

        transaction = Transaction.query.filter_by(order_id=order.id).one()
        assert transaction.amount == Decimal("120.00")
        assert transaction.platform_fee == Decimal("6.00")
        assert transaction.seller_earnings == Decimal("114.00")
        assert db.session.get(Order, order.id).payment_status == PaymentStatus.SUCCEEDED


class TestListingAndMessagingCounters:
    def test_listing_bumps_stats_and_seller_flag(self, app, seller_user, listing):
        stats = ProfileStats.query.filter_by(profile_id=seller_user.id).one()
        assert stats.listings_count == 1
        assert db.session.get(Profile, seller_user.id).is_seller

    def test_message_stamps_conversation(self, app, buyer_user, listing, as_user):
        conversation, message = ConversationService.start_conversation(
            as_user(buyer_user), listing.id, "Is this still available?"
        )
        assert conversation.last_message_at is not None
