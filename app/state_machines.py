"""Explicit transition tables for every status enum.

A transition to the same state is always allowed so that updates touching
other columns never trip the check.
"""
from app.enums import (
    DisputeStatus,
    ListingStatus,
    OrderStatus,
    PaymentStatus,
    RefundStatus,
    ReturnStatus,
    TrackingStatus,
    VerificationStatus,
)
from app.errors import ValidationFailed


class StateMachine:
    def __init__(self, name, states, transitions):
        self.name = name
        self.states = states
        self.transitions = {state: frozenset(targets) for state, targets in transitions.items()}

        unknown = {
            target
            for targets in self.transitions.values()
            for target in targets
            if target not in set(states)
        }
        if unknown:
            raise ValueError(f"{name}: transitions reference unknown states {unknown}")

    @property
    def terminal_states(self):
        return frozenset(s for s in self.states if not self.transitions.get(s))

    def coerce(self, value, field="status"):
        try:
            return self.states(value)
        except ValueError:
            raise ValidationFailed(field, f"'{value}' is not a valid {self.name}")

    def allowed_targets(self, current):
        return self.transitions.get(self.coerce(current), frozenset())

    def can_transition(self, current, target) -> bool:
        current, target = self.coerce(current), self.coerce(target)
        return current == target or target in self.allowed_targets(current)

    def assert_transition(self, current, target, field="status"):
        if not self.can_transition(current, target):
            raise ValidationFailed(
                field, f"Cannot transition {self.name} from {self.coerce(current).value} to {self.coerce(target).value}"
            )


# Cancellation is reachable from everything before shipment
_ORDER_CANCELLABLE = {OrderStatus.CANCELLED}

ORDER_STATUS = StateMachine(
    "order_status",
    OrderStatus,
    {
        OrderStatus.PENDING_PAYMENT: {OrderStatus.PAYMENT_PROCESSING} | _ORDER_CANCELLABLE,
        OrderStatus.PAYMENT_PROCESSING: {OrderStatus.PAID, OrderStatus.PAYMENT_FAILED} | _ORDER_CANCELLABLE,
        OrderStatus.PAYMENT_FAILED: {OrderStatus.PENDING_PAYMENT} | _ORDER_CANCELLABLE,
        OrderStatus.PAID: {OrderStatus.PREPARING, OrderStatus.REFUNDED} | _ORDER_CANCELLABLE,
        OrderStatus.PREPARING: {OrderStatus.SHIPPED} | _ORDER_CANCELLABLE,
        OrderStatus.SHIPPED: {OrderStatus.IN_TRANSIT},
        OrderStatus.IN_TRANSIT: {OrderStatus.DELIVERED},
        OrderStatus.DELIVERED: {OrderStatus.COMPLETED, OrderStatus.REFUNDED},
        OrderStatus.COMPLETED: {OrderStatus.REFUNDED},
        OrderStatus.CANCELLED: set(),
        OrderStatus.REFUNDED: set(),
    },
)

_DISPUTE_OUTCOMES = {
    DisputeStatus.ESCALATED,
    DisputeStatus.RESOLVED,
    DisputeStatus.CLOSED,
    DisputeStatus.CANCELLED,
}
_DISPUTE_WAITING = {
    DisputeStatus.AWAITING_SELLER_RESPONSE,
    DisputeStatus.AWAITING_BUYER_RESPONSE,
    DisputeStatus.UNDER_REVIEW,
}

DISPUTE_STATUS = StateMachine(
    "dispute_status",
    DisputeStatus,
    {
        DisputeStatus.OPEN: _DISPUTE_WAITING | {DisputeStatus.CANCELLED},
        DisputeStatus.AWAITING_SELLER_RESPONSE: (_DISPUTE_WAITING | _DISPUTE_OUTCOMES)
        - {DisputeStatus.AWAITING_SELLER_RESPONSE},
        DisputeStatus.AWAITING_BUYER_RESPONSE: (_DISPUTE_WAITING | _DISPUTE_OUTCOMES)
        - {DisputeStatus.AWAITING_BUYER_RESPONSE},
        DisputeStatus.UNDER_REVIEW: _DISPUTE_OUTCOMES,
        DisputeStatus.ESCALATED: {DisputeStatus.RESOLVED, DisputeStatus.CLOSED},
        DisputeStatus.RESOLVED: set(),
        DisputeStatus.CLOSED: set(),
        DisputeStatus.CANCELLED: set(),
    },
)

RETURN_STATUS = StateMachine(
    "return_status",
    ReturnStatus,
    {
        ReturnStatus.REQUESTED: {ReturnStatus.APPROVED, ReturnStatus.REJECTED},
        ReturnStatus.APPROVED: {ReturnStatus.SHIPPED_BACK},
        ReturnStatus.REJECTED: {ReturnStatus.CLOSED},
        ReturnStatus.SHIPPED_BACK: {ReturnStatus.RECEIVED},
        ReturnStatus.RECEIVED: {ReturnStatus.INSPECTING},
        ReturnStatus.INSPECTING: {ReturnStatus.REFUNDED, ReturnStatus.REPLACED},
        ReturnStatus.REFUNDED: {ReturnStatus.CLOSED},
        ReturnStatus.REPLACED: {ReturnStatus.CLOSED},
        ReturnStatus.CLOSED: set(),
    },
)

TRACKING_STATUS = StateMachine(
    "tracking_status",
    TrackingStatus,
    {
        TrackingStatus.LABEL_CREATED: {TrackingStatus.PICKED_UP, TrackingStatus.EXCEPTION},
        TrackingStatus.PICKED_UP: {TrackingStatus.IN_TRANSIT, TrackingStatus.EXCEPTION},
        TrackingStatus.IN_TRANSIT: {TrackingStatus.OUT_FOR_DELIVERY, TrackingStatus.DELIVERED, TrackingStatus.EXCEPTION},
        TrackingStatus.OUT_FOR_DELIVERY: {TrackingStatus.DELIVERED, TrackingStatus.EXCEPTION},
        TrackingStatus.EXCEPTION: {TrackingStatus.IN_TRANSIT, TrackingStatus.RETURNED_TO_SENDER},
        TrackingStatus.DELIVERED: set(),
        TrackingStatus.RETURNED_TO_SENDER: set(),
    },
)

PAYMENT_STATUS = StateMachine(
    "payment_status",
    PaymentStatus,
    {
        PaymentStatus.PENDING: {PaymentStatus.PROCESSING, PaymentStatus.FAILED},
        PaymentStatus.PROCESSING: {PaymentStatus.SUCCEEDED, PaymentStatus.FAILED},
        PaymentStatus.FAILED: {PaymentStatus.PENDING},
        PaymentStatus.SUCCEEDED: {PaymentStatus.REFUNDED, PaymentStatus.PARTIALLY_REFUNDED},
        PaymentStatus.PARTIALLY_REFUNDED: {PaymentStatus.REFUNDED},
        PaymentStatus.REFUNDED: set(),
    },
)

REFUND_STATUS = StateMachine(
    "refund_status",
    RefundStatus,
    {
        RefundStatus.PENDING: {RefundStatus.APPROVED, RefundStatus.REJECTED},
        RefundStatus.APPROVED: {RefundStatus.PROCESSED},
        RefundStatus.REJECTED: set(),
        RefundStatus.PROCESSED: set(),
    },
)

VERIFICATION_STATUS = StateMachine(
    "verification_status",
    VerificationStatus,
    {
        VerificationStatus.PENDING: {
            VerificationStatus.APPROVED,
            VerificationStatus.REJECTED,
            VerificationStatus.MORE_INFO_NEEDED,
        },
        VerificationStatus.MORE_INFO_NEEDED: {VerificationStatus.PENDING, VerificationStatus.REJECTED},
        VerificationStatus.APPROVED: set(),
        VerificationStatus.REJECTED: set(),
    },
)

LISTING_STATUS = StateMachine(
    "listing_status",
    ListingStatus,
    {
        ListingStatus.DRAFT: {ListingStatus.ACTIVE, ListingStatus.ARCHIVED},
        ListingStatus.ACTIVE: {ListingStatus.RESERVED, ListingStatus.SOLD, ListingStatus.ARCHIVED, ListingStatus.DRAFT},
        ListingStatus.RESERVED: {ListingStatus.ACTIVE, ListingStatus.SOLD},
        ListingStatus.SOLD: set(),
        ListingStatus.ARCHIVED: {ListingStatus.DRAFT, ListingStatus.ACTIVE},
    },
)
