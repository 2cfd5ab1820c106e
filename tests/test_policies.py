import pytest
from types import SimpleNamespace
from decimal import Decimal
from app.enums import ListingStatus, OrderStatus, UserRole
from app.errors import AuthorizationDenied
from app.models.admin import AdminAuditLog, SystemLog
from app.models.listing import Listing
from app.models.order import Order
from app.models.storage import StorageBucket, StorageObject
from app.security import Principal, get_evaluator
from app.security.policies import Policy, PolicyEvaluator, PolicyRegistry

ALICE = Principal(id="alice", role=UserRole.USER)
BOB = Principal(id="bob", role=UserRole.USER)
ADMIN = Principal(id="root", role=UserRole.ADMIN)
ANON = Principal.anonymous()
SERVICE = Principal.service()


def _evaluator(*policies):
    registry = PolicyRegistry()
    for policy in policies:
        registry.register(policy)
    registry.mark_service_only("secrets")
    registry.mark_append_only("ledger")
    return PolicyEvaluator(registry)


class TestEvaluatorSemantics:
    """OR composition, default deny and the privileged bypasses"""

    def test_policies_are_ored(self):
        evaluator = _evaluator(
            Policy("owner", "things", ["select"], using=lambda p, row: row.owner == p.id),
            Policy("public", "things", ["select"], using=lambda p, row: row.public),
        )
        private = SimpleNamespace(owner="alice", public=False)
        public = SimpleNamespace(owner="alice", public=True)

        assert evaluator.is_allowed(ALICE, "select", "things", private)
        assert not evaluator.is_allowed(BOB, "select", "things", private)
        assert evaluator.is_allowed(BOB, "select", "things", public)

    def test_no_policy_means_deny(self):
        evaluator = _evaluator()
        row = SimpleNamespace()
        assert not evaluator.is_allowed(ALICE, "select", "things", row)
        assert not evaluator.is_allowed(ANON, "insert", "things", row)

    def test_admin_and_service_bypass(self):
        evaluator = _evaluator()
        row = SimpleNamespace()
        assert evaluator.is_allowed(ADMIN, "delete", "things", row)
        assert evaluator.is_allowed(SERVICE, "delete", "things", row)

    def test_service_only_table(self):
        evaluator = _evaluator(Policy("anyone", "secrets", ["select"], using=lambda p, row: True))
        row = SimpleNamespace()
        assert not evaluator.is_allowed(ALICE, "select", "secrets", row)
        assert not evaluator.is_allowed(ADMIN, "select", "secrets", row)
        assert evaluator.is_allowed(SERVICE, "select", "secrets", row)

    def test_append_only_table(self):
        evaluator = _evaluator()
        row = SimpleNamespace()
        assert evaluator.is_allowed(ADMIN, "insert", "ledger", row)
        for principal in (ADMIN, SERVICE):
            assert not evaluator.is_allowed(principal, "update", "ledger", row)
            assert not evaluator.is_allowed(principal, "delete", "ledger", row)
            with pytest.raises(AuthorizationDenied):
                evaluator.begin_update(principal, "ledger", row)

    def test_update_checks_old_and_new_row(self):
        evaluator = _evaluator(
            Policy(
                "owner_edit", "things", ["update"],
                using=lambda p, row: row.owner == p.id,
                check=lambda p, row: row.owner == p.id,
            )
        )
        row = SimpleNamespace(owner="alice")
        pending = evaluator.begin_update(ALICE, "things", row)
        row.owner = "bob"
        with pytest.raises(AuthorizationDenied):
            pending.confirm(row)

        with pytest.raises(AuthorizationDenied):
            evaluator.begin_update(BOB, "things", SimpleNamespace(owner="alice"))

    def test_denial_message_is_generic(self):
        evaluator = _evaluator()
        with pytest.raises(AuthorizationDenied) as exc:
            evaluator.authorize(ALICE, "insert", "things", SimpleNamespace())
        assert exc.value.to_dict() == {"error": "Permission denied"}
        assert "things" in exc.value.reason

    def test_filter_visible_drops_silently(self):
        evaluator = _evaluator(Policy("own", "things", ["select"], using=lambda p, row: row.owner == p.id))
        rows = [SimpleNamespace(owner="alice"), SimpleNamespace(owner="bob")]
        assert evaluator.filter_visible(ALICE, "things", rows) == rows[:1]

    def test_decorator_registration(self):
        registry = PolicyRegistry()

        @registry.policy("things", ["select"])
        def things_visible(principal, row):
            return row.visible

        assert [p.name for p in registry.policies_for("things", "select")] == ["things_visible"]


class TestMarketplaceRules:
    """The installed rule set, evaluated on unsaved rows"""

    @pytest.fixture
    def evaluator(self, app):
        return get_evaluator()

    def test_draft_listing_only_visible_to_seller(self, evaluator):
        draft = Listing(seller_id="alice", status=ListingStatus.DRAFT, price=Decimal("10"))
        active = Listing(seller_id="alice", status=ListingStatus.ACTIVE, price=Decimal("10"))

        assert evaluator.is_allowed(ALICE, "select", "listings", draft)
        assert not evaluator.is_allowed(BOB, "select", "listings", draft)
        assert not evaluator.is_allowed(ANON, "select", "listings", draft)
        assert evaluator.is_allowed(ANON, "select", "listings", active)

    def test_listing_insert_for_self_only(self, evaluator):
        assert evaluator.is_allowed(ALICE, "insert", "listings", Listing(seller_id="alice"))
        assert not evaluator.is_allowed(ALICE, "insert", "listings", Listing(seller_id="bob"))

    def test_only_drafts_can_be_deleted_by_seller(self, evaluator):
        assert evaluator.is_allowed(ALICE, "delete", "listings", Listing(seller_id="alice", status=ListingStatus.DRAFT))
        assert not evaluator.is_allowed(ALICE, "delete", "listings", Listing(seller_id="alice", status=ListingStatus.SOLD))

    def test_orders_visible_to_parties(self, evaluator):
        order = Order(buyer_id="alice", seller_id="bob", status=OrderStatus.PAID)
        assert evaluator.is_allowed(ALICE, "select", "orders", order)
        assert evaluator.is_allowed(BOB, "select", "orders", order)
        assert not evaluator.is_allowed(Principal(id="carol", role=UserRole.USER), "select", "orders", order)

    def test_buyer_cancel_gated_by_status(self, evaluator):
        order = Order(buyer_id="alice", seller_id="bob", status=OrderStatus.PENDING_PAYMENT)
        pending = evaluator.begin_update(ALICE, "orders", order)
        order.status = OrderStatus.CANCELLED
        pending.confirm(order)

        shipped = Order(buyer_id="alice", seller_id="bob", status=OrderStatus.SHIPPED)
        with pytest.raises(AuthorizationDenied):
            evaluator.begin_update(ALICE, "orders", shipped)

    def test_seller_cannot_mark_paid(self, evaluator):
        order = Order(buyer_id="alice", seller_id="bob", status=OrderStatus.PAID)
        pending = evaluator.begin_update(BOB, "orders", order)
        order.status = OrderStatus.REFUNDED
        with pytest.raises(AuthorizationDenied):
            pending.confirm(order)

    def test_audit_log_closed_to_users(self, evaluator):
        entry = AdminAuditLog(action="user_role.approve", entity_type="user_role")
        assert not evaluator.is_allowed(ALICE, "select", "admin_audit_log", entry)
        assert evaluator.is_allowed(ADMIN, "select", "admin_audit_log", entry)

    def test_system_logs_service_only(self, evaluator):
        entry = SystemLog(source="test", message="hello")
        assert not evaluator.is_allowed(ADMIN, "select", "system_logs", entry)
        assert evaluator.is_allowed(SERVICE, "insert", "system_logs", entry)

    def test_storage_objects_namespaced_by_owner(self, evaluator):
        public = StorageBucket(id="avatars", public=True, file_size_limit=10)
        private = StorageBucket(id="returns", public=False, file_size_limit=10)

        own = StorageObject(bucket=private, name="alice/receipt.pdf", owner_id="alice")
        assert evaluator.is_allowed(ALICE, "select", "storage_objects", own)
        assert not evaluator.is_allowed(BOB, "select", "storage_objects", own)
        assert evaluator.is_allowed(ALICE, "insert", "storage_objects", own)

        squatted = StorageObject(bucket=public, name="bob/avatar.png", owner_id="alice")
        assert evaluator.is_allowed(ANON, "select", "storage_objects", squatted)
        assert not evaluator.is_allowed(ALICE, "insert", "storage_objects", squatted)
