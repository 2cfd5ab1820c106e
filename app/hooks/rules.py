import logging
from decimal import Decimal

from app.enums import (
    AccountType,
    ListingStatus,
    OrderStatus,
    PaymentStatus,
    REQUIRED_SETUP_STEPS,
    SetupStep,
)
from app.errors import AuthorizationDenied, IntegrityConflict, ValidationFailed
from app.hooks import (
    AFTER_INSERT,
    AFTER_UPDATE,
    ALL_TABLES,
    BEFORE_INSERT,
    BEFORE_UPDATE,
    HookRegistry,
)
from app.models.base import utcnow
from app.models.cart import ShoppingCart
from app.models.conversation import Conversation
from app.models.listing import Listing
from app.models.onboarding import SetupProgress
from app.models.order import Order, Transaction
from app.models.profile import Profile, ProfileStats
from app.state_machines import LISTING_STATUS
from app.utils.helpers import base_username, calculate_platform_fee, generate_order_number

logger = logging.getLogger(__name__)

ORDER_NUMBER_ATTEMPTS = 5

hooks = HookRegistry()


# -- every table ---------------------------------------------------------

@hooks.register(ALL_TABLES, BEFORE_INSERT)
def coerce_status_columns(instance, ctx):
    for column, machine in instance.__state_machines__.items():
        value = getattr(instance, column)
        if value is not None:
            setattr(instance, column, machine.coerce(value, column))


@hooks.register(ALL_TABLES, BEFORE_UPDATE)
def touch_updated_at(instance, ctx):
    # Client-supplied values are overwritten
    if hasattr(instance, "updated_at"):
        instance.updated_at = utcnow()


@hooks.register(ALL_TABLES, BEFORE_UPDATE)
def enforce_status_transitions(instance, ctx):
    for column, machine in instance.__state_machines__.items():
        new = getattr(instance, column)
        if new is None:
            continue
        new = machine.coerce(new, column)
        setattr(instance, column, new)
        old = ctx.previous.get(column)
        if old is not None:
            machine.assert_transition(old, new, column)


# -- principals ----------------------------------------------------------

def _unique_username(session, candidate):
    username = candidate
    counter = 1
    with session.no_autoflush:
        while session.query(Profile.id).filter_by(username=username).first():
            suffix = str(counter)
            username = f"{candidate[:30 - len(suffix)]}{suffix}"
            counter += 1
    return username


@hooks.register("users", AFTER_INSERT)
def bootstrap_principal(user, ctx):
    """Profile, empty cart and zeroed stats for every new principal."""
    metadata = user.user_metadata or {}
    account_type = AccountType(metadata.get("account_type", AccountType.PERSONAL))

    profile = Profile(
        id=user.id,
        username=_unique_username(ctx.session, base_username(user.email)),
        full_name=metadata.get("full_name"),
        account_type=account_type,
        is_seller=account_type == AccountType.BRAND,
        brand_name=metadata.get("brand_name"),
        brand_category=metadata.get("brand_category"),
        brand_website=metadata.get("brand_website"),
    )
    ctx.insert(profile)
    ctx.insert(ShoppingCart(user_id=user.id))
    ctx.insert(ProfileStats(profile_id=profile.id))
    logger.info("Bootstrapped principal %s as %s", user.id, profile.username)


@hooks.register("users", BEFORE_UPDATE)
def guard_role_changes(user, ctx):
    if ctx.changed(user, "role") and not (ctx.principal.is_admin or ctx.principal.is_service):
        raise AuthorizationDenied("role change")


# -- onboarding ----------------------------------------------------------

@hooks.register("setup_progress", AFTER_INSERT, AFTER_UPDATE)
def complete_profile_setup(progress, ctx):
    """Flip setup_completed once every required step is done. Idempotent."""
    if SetupStep(progress.step) not in REQUIRED_SETUP_STEPS or not progress.completed:
        return

    profile = ctx.session.get(Profile, progress.profile_id)
    if profile is None or profile.setup_completed:
        return

    done = {
        SetupStep(row.step)
        for row in ctx.session.query(SetupProgress)
        .filter_by(profile_id=progress.profile_id, completed=True)
        .all()
    }
    if REQUIRED_SETUP_STEPS <= done:
        ctx.update(profile, setup_completed=True, setup_completed_at=utcnow())
        logger.info("Profile %s completed setup", profile.id)


# -- listings ------------------------------------------------------------

@hooks.register("listings", AFTER_INSERT)
def count_new_listing(listing, ctx):
    stats = ctx.session.query(ProfileStats).filter_by(profile_id=listing.seller_id).first()
    if stats is not None:
        ctx.update(stats, listings_count=stats.listings_count + 1)
    profile = ctx.session.get(Profile, listing.seller_id)
    if profile is not None and not profile.is_seller:
        ctx.update(profile, is_seller=True)


def _move_listing(ctx, listing_id, target):
    if listing_id is None:
        return
    listing = ctx.session.get(Listing, listing_id)
    if listing is not None and listing.status != target and LISTING_STATUS.can_transition(listing.status, target):
        ctx.update(listing, status=target)


# -- orders --------------------------------------------------------------

def order_number_taken(session, candidate) -> bool:
    with session.no_autoflush:
        return session.query(Order.id).filter_by(order_number=candidate).first() is not None


@hooks.register("orders", BEFORE_INSERT)
def assign_order_number(order, ctx):
    """Server-assigned ORD-<date>-<nnnn>, retried on collision.

    Only rows this transaction can see are checked; a number committed
    concurrently surfaces as an IntegrityError on flush, which
    OrderService.create_order retries.
    """
    session = ctx.session
    pending = {
        obj.order_number for obj in session.new if isinstance(obj, Order) and obj is not order
    }
    for attempt in range(1, ORDER_NUMBER_ATTEMPTS + 1):
        candidate = generate_order_number()
        if candidate not in pending and not order_number_taken(session, candidate):
            order.order_number = candidate
            return
        logger.warning("Order number collision on %s (attempt %d)", candidate, attempt)
    raise IntegrityConflict("Could not allocate identifier for order")


@hooks.register("orders", BEFORE_INSERT)
def reject_self_purchase(order, ctx):
    if order.buyer_id is not None and order.buyer_id == order.seller_id:
        raise ValidationFailed("seller_id", "Buyer and seller must be different profiles")


@hooks.register("orders", BEFORE_INSERT, BEFORE_UPDATE)
def derive_order_total(order, ctx):
    if order.subtotal is None:
        raise ValidationFailed("subtotal", "Missing data for required field.")
    for field in ("subtotal", "shipping_cost", "tax_amount", "discount_amount"):
        value = Decimal(str(getattr(order, field) or 0))
        if value < 0:
            raise ValidationFailed(field, "Must not be negative.")
        setattr(order, field, value)

    total = order.calculate_total()
    if total < 0:
        raise ValidationFailed("discount_amount", "Discount cannot exceed the order amount.")
    order.total_amount = total


_PAYMENT_STATUS_FOR_ORDER = {
    OrderStatus.PENDING_PAYMENT: PaymentStatus.PENDING,
    OrderStatus.PAYMENT_PROCESSING: PaymentStatus.PROCESSING,
    OrderStatus.PAYMENT_FAILED: PaymentStatus.FAILED,
    OrderStatus.PAID: PaymentStatus.SUCCEEDED,
    OrderStatus.REFUNDED: PaymentStatus.REFUNDED,
}

_ORDER_TIMESTAMPS = {
    OrderStatus.CANCELLED: "cancelled_at",
    OrderStatus.SHIPPED: "shipped_at",
    OrderStatus.DELIVERED: "delivered_at",
    OrderStatus.COMPLETED: "completed_at",
}


@hooks.register("orders", BEFORE_UPDATE)
def follow_order_status(order, ctx):
    if not ctx.changed(order, "status"):
        return
    status = OrderStatus(order.status)
    if status in _PAYMENT_STATUS_FOR_ORDER:
        order.payment_status = _PAYMENT_STATUS_FOR_ORDER[status]
    elif status == OrderStatus.CANCELLED and order.payment_status == PaymentStatus.SUCCEEDED:
        # Captured funds go back to the buyer
        order.payment_status = PaymentStatus.REFUNDED
    if status in _ORDER_TIMESTAMPS:
        setattr(order, _ORDER_TIMESTAMPS[status], utcnow())


@hooks.register("orders", AFTER_INSERT)
def reserve_listing(order, ctx):
    _move_listing(ctx, order.listing_id, ListingStatus.RESERVED)


def _refund_transactions(ctx, order):
    for transaction in order.transactions:
        if transaction.status in (PaymentStatus.SUCCEEDED, PaymentStatus.PARTIALLY_REFUNDED):
            ctx.update(transaction, status=PaymentStatus.REFUNDED)


@hooks.register("orders", AFTER_UPDATE)
def settle_order(order, ctx):
    if not ctx.changed(order, "status"):
        return
    status = OrderStatus(order.status)

    if status == OrderStatus.PAID:
        ctx.insert(
            Transaction(
                order_id=order.id,
                buyer_id=order.buyer_id,
                seller_id=order.seller_id,
                amount=order.total_amount,
                status=PaymentStatus.SUCCEEDED,
            )
        )
    elif status == OrderStatus.CANCELLED:
        _move_listing(ctx, order.listing_id, ListingStatus.ACTIVE)
        _refund_transactions(ctx, order)
    elif status == OrderStatus.REFUNDED:
        _refund_transactions(ctx, order)
    elif status == OrderStatus.COMPLETED:
        _move_listing(ctx, order.listing_id, ListingStatus.SOLD)
        for profile_id, counter in ((order.seller_id, "sales_count"), (order.buyer_id, "purchases_count")):
            stats = ctx.session.query(ProfileStats).filter_by(profile_id=profile_id).first()
            if stats is not None:
                ctx.update(stats, **{counter: getattr(stats, counter) + 1})


# -- transactions --------------------------------------------------------

@hooks.register("transactions", BEFORE_INSERT)
def apply_platform_fee(transaction, ctx):
    amount = Decimal(str(transaction.amount))
    transaction.platform_fee = calculate_platform_fee(amount)
    transaction.seller_earnings = amount - transaction.platform_fee


# -- messaging -----------------------------------------------------------

@hooks.register("messages", AFTER_INSERT)
def stamp_conversation_activity(message, ctx):
    conversation = message.conversation or ctx.session.get(Conversation, message.conversation_id)
    if conversation is not None:
        ctx.update(conversation, last_message_at=message.created_at or utcnow())
