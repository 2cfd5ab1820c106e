"""The marketplace's row policies, one block per table."""
from app.enums import ListingStatus, OrderStatus, RefundStatus, ReturnStatus, VerificationStatus
from app.models.listing import ORDER_HELD_LISTING_STATUSES, PUBLIC_LISTING_STATUSES
from app.models.order import (
    BUYER_CANCELLABLE_STATUSES,
    SELLER_FULFILMENT_STATUSES,
    SELLER_SETTABLE_STATUSES,
)
from app.security.policies import Policy, PolicyRegistry

SELECT, INSERT, UPDATE, DELETE = "select", "insert", "update", "delete"


def _is(principal, owner_id) -> bool:
    return principal.is_authenticated and owner_id == principal.id


def _anyone(principal, row) -> bool:
    return True


def _order_party(principal, order) -> bool:
    return order is not None and principal.is_authenticated and order.is_party(principal.id)


def build_registry() -> PolicyRegistry:
    registry = PolicyRegistry()
    add = registry.register

    registry.mark_service_only("system_logs")
    registry.mark_append_only("admin_approvals", "admin_audit_log")

    # users: a principal sees and edits only itself
    add(Policy("users_read_own", "users", [SELECT], using=lambda p, row: _is(p, row.id)))
    add(Policy(
        "users_update_own", "users", [UPDATE],
        using=lambda p, row: _is(p, row.id),
        check=lambda p, row: _is(p, row.id),
    ))

    # profiles: public directory, owner edits
    add(Policy("profiles_public_read", "profiles", [SELECT], using=_anyone))
    add(Policy(
        "profiles_update_own", "profiles", [UPDATE],
        using=lambda p, row: _is(p, row.id),
        check=lambda p, row: _is(p, row.id),
    ))

    add(Policy("social_accounts_public_read", "social_media_accounts", [SELECT], using=_anyone))
    add(Policy(
        "social_accounts_manage_own", "social_media_accounts", [INSERT, UPDATE, DELETE],
        using=lambda p, row: _is(p, row.profile_id),
        check=lambda p, row: _is(p, row.profile_id),
    ))

    add(Policy("profile_stats_public_read", "profile_stats", [SELECT], using=_anyone))

    add(Policy("categories_active_read", "categories", [SELECT], using=lambda p, row: row.is_active))

    # listings: public statuses for everyone, everything for the seller
    add(Policy(
        "listings_public_read", "listings", [SELECT],
        using=lambda p, row: row.status in PUBLIC_LISTING_STATUSES and row.deleted_at is None,
    ))
    add(Policy("listings_seller_read", "listings", [SELECT], using=lambda p, row: _is(p, row.seller_id)))
    add(Policy("listings_seller_insert", "listings", [INSERT], check=lambda p, row: _is(p, row.seller_id)))
    add(Policy(
        "listings_seller_update", "listings", [UPDATE],
        using=lambda p, row: _is(p, row.seller_id) and row.status not in ORDER_HELD_LISTING_STATUSES,
        check=lambda p, row: _is(p, row.seller_id) and row.status not in ORDER_HELD_LISTING_STATUSES,
    ))
    add(Policy(
        "listings_seller_delete", "listings", [DELETE],
        using=lambda p, row: _is(p, row.seller_id) and row.status == ListingStatus.DRAFT,
    ))

    add(Policy("carts_own", "shopping_carts", [SELECT], using=lambda p, row: _is(p, row.user_id)))
    add(Policy(
        "cart_items_own", "cart_items", [SELECT, INSERT, UPDATE, DELETE],
        using=lambda p, row: row.cart is not None and _is(p, row.cart.user_id),
        check=lambda p, row: row.cart is not None and _is(p, row.cart.user_id),
    ))

    # orders: parties read, buyer creates, status-gated updates per side
    add(Policy("orders_party_read", "orders", [SELECT], using=lambda p, row: _order_party(p, row)))
    add(Policy("orders_buyer_insert", "orders", [INSERT], check=lambda p, row: _is(p, row.buyer_id)))
    add(Policy(
        "orders_buyer_cancel", "orders", [UPDATE],
        using=lambda p, row: _is(p, row.buyer_id) and row.status in BUYER_CANCELLABLE_STATUSES,
        check=lambda p, row: _is(p, row.buyer_id) and row.status == OrderStatus.CANCELLED,
    ))
    add(Policy(
        "orders_buyer_confirm_receipt", "orders", [UPDATE],
        using=lambda p, row: _is(p, row.buyer_id) and row.status == OrderStatus.DELIVERED,
        check=lambda p, row: _is(p, row.buyer_id) and row.status == OrderStatus.COMPLETED,
    ))
    add(Policy(
        "orders_seller_fulfil", "orders", [UPDATE],
        using=lambda p, row: _is(p, row.seller_id) and row.status in SELLER_FULFILMENT_STATUSES,
        check=lambda p, row: _is(p, row.seller_id) and row.status in SELLER_SETTABLE_STATUSES,
    ))

    add(Policy(
        "transactions_party_read", "transactions", [SELECT],
        using=lambda p, row: _is(p, row.buyer_id) or _is(p, row.seller_id),
    ))

    # conversations and messages: either side of the conversation
    add(Policy("conversations_party_read", "conversations", [SELECT, UPDATE],
               using=lambda p, row: row.is_party(p.id),
               check=lambda p, row: row.is_party(p.id)))
    add(Policy("conversations_buyer_start", "conversations", [INSERT],
               check=lambda p, row: _is(p, row.buyer_id) and row.buyer_id != row.seller_id))
    add(Policy("messages_party_read", "messages", [SELECT],
               using=lambda p, row: row.conversation is not None and row.conversation.is_party(p.id)))
    add(Policy("messages_party_send", "messages", [INSERT],
               check=lambda p, row: _is(p, row.sender_id)
               and row.conversation is not None and row.conversation.is_party(p.id)))

    # brand verification: owner edits only while pending
    add(Policy("brand_verification_read_own", "brand_verification_requests", [SELECT],
               using=lambda p, row: _is(p, row.profile_id)))
    add(Policy("brand_verification_submit", "brand_verification_requests", [INSERT],
               check=lambda p, row: _is(p, row.profile_id)
               and row.verification_status == VerificationStatus.PENDING))
    add(Policy(
        "brand_verification_edit_pending", "brand_verification_requests", [UPDATE],
        using=lambda p, row: _is(p, row.profile_id) and row.verification_status == VerificationStatus.PENDING,
        check=lambda p, row: _is(p, row.profile_id) and row.verification_status == VerificationStatus.PENDING,
    ))
    add(Policy(
        "brand_verification_resubmit", "brand_verification_requests", [UPDATE],
        using=lambda p, row: _is(p, row.profile_id)
        and row.verification_status == VerificationStatus.MORE_INFO_NEEDED,
        check=lambda p, row: _is(p, row.profile_id) and row.verification_status == VerificationStatus.PENDING,
    ))

    add(Policy(
        "setup_progress_own", "setup_progress", [SELECT, INSERT, UPDATE],
        using=lambda p, row: _is(p, row.profile_id),
        check=lambda p, row: _is(p, row.profile_id),
    ))

    # disputes: initiator or respondent, moderators assist
    add(Policy("disputes_party_read", "disputes", [SELECT], using=lambda p, row: row.is_party(p.id)))
    add(Policy(
        "disputes_party_open", "disputes", [INSERT],
        check=lambda p, row: _is(p, row.initiator_id) and _order_party(p, row.order)
        and row.order.is_party(row.respondent_id) and row.respondent_id != row.initiator_id,
    ))
    add(Policy(
        "disputes_party_update", "disputes", [UPDATE],
        using=lambda p, row: row.is_party(p.id),
        check=lambda p, row: row.is_party(p.id),
    ))
    add(Policy(
        "disputes_moderator", "disputes", [SELECT, UPDATE],
        using=lambda p, row: p.is_moderator,
        check=lambda p, row: p.is_moderator,
    ))

    # returns and refunds: both sides read, each side moves its own steps
    for table in ("returns", "refund_requests"):
        add(Policy(f"{table}_party_read", table, [SELECT],
                   using=lambda p, row: _is(p, row.buyer_id) or _is(p, row.seller_id)))
        add(Policy(
            f"{table}_buyer_request", table, [INSERT],
            check=lambda p, row: _is(p, row.buyer_id) and row.order is not None
            and row.order.buyer_id == row.buyer_id and row.order.seller_id == row.seller_id,
        ))
    add(Policy(
        "returns_buyer_ship_back", "returns", [UPDATE],
        using=lambda p, row: _is(p, row.buyer_id) and row.status == ReturnStatus.APPROVED,
        check=lambda p, row: _is(p, row.buyer_id) and row.status == ReturnStatus.SHIPPED_BACK,
    ))
    add(Policy(
        "returns_seller_handle", "returns", [UPDATE],
        using=lambda p, row: _is(p, row.seller_id),
        check=lambda p, row: _is(p, row.seller_id) and row.status != ReturnStatus.SHIPPED_BACK,
    ))
    add(Policy(
        "refund_requests_seller_decide", "refund_requests", [UPDATE],
        using=lambda p, row: _is(p, row.seller_id) and row.status == RefundStatus.PENDING,
        check=lambda p, row: _is(p, row.seller_id)
        and row.status in (RefundStatus.APPROVED, RefundStatus.REJECTED),
    ))

    # storage: public buckets readable by all, objects namespaced by owner id
    add(Policy("buckets_public_read", "storage_buckets", [SELECT], using=_anyone))
    add(Policy("objects_public_read", "storage_objects", [SELECT],
               using=lambda p, row: row.bucket is not None and row.bucket.public))
    add(Policy("objects_owner_read", "storage_objects", [SELECT], using=lambda p, row: _is(p, row.path_owner)))
    add(Policy(
        "objects_owner_write", "storage_objects", [INSERT, UPDATE, DELETE],
        using=lambda p, row: _is(p, row.path_owner),
        check=lambda p, row: _is(p, row.path_owner) and _is(p, row.owner_id),
    ))

    return registry
