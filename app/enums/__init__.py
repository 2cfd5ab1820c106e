from enum import Enum


class UserRole(str, Enum):
    USER = "user"
    MODERATOR = "moderator"
    ADMIN = "admin"


class AccountType(str, Enum):
    PERSONAL = "personal"
    BRAND = "brand"


class Operation(str, Enum):
    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


class ListingStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    RESERVED = "reserved"
    SOLD = "sold"
    ARCHIVED = "archived"


class OrderStatus(str, Enum):
    PENDING_PAYMENT = "pending_payment"
    PAYMENT_PROCESSING = "payment_processing"
    PAYMENT_FAILED = "payment_failed"
    PAID = "paid"
    PREPARING = "preparing"
    SHIPPED = "shipped"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    REFUNDED = "refunded"
    PARTIALLY_REFUNDED = "partially_refunded"


class TrackingStatus(str, Enum):
    LABEL_CREATED = "label_created"
    PICKED_UP = "picked_up"
    IN_TRANSIT = "in_transit"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    EXCEPTION = "exception"
    RETURNED_TO_SENDER = "returned_to_sender"


class DisputeStatus(str, Enum):
    OPEN = "open"
    AWAITING_SELLER_RESPONSE = "awaiting_seller_response"
    AWAITING_BUYER_RESPONSE = "awaiting_buyer_response"
    UNDER_REVIEW = "under_review"
    ESCALATED = "escalated"
    RESOLVED = "resolved"
    CLOSED = "closed"
    CANCELLED = "cancelled"


class ReturnStatus(str, Enum):
    REQUESTED = "requested"
    APPROVED = "approved"
    REJECTED = "rejected"
    SHIPPED_BACK = "shipped_back"
    RECEIVED = "received"
    INSPECTING = "inspecting"
    REFUNDED = "refunded"
    REPLACED = "replaced"
    CLOSED = "closed"


class RefundStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    PROCESSED = "processed"


class VerificationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    MORE_INFO_NEEDED = "more_info_needed"


class AdminAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"
    REVOKE = "revoke"


class SetupStep(str, Enum):
    PROFILE_INFO = "profile_info"
    AVATAR = "avatar"
    PAYMENT_METHOD = "payment_method"
    SHIPPING_ADDRESS = "shipping_address"
    SOCIAL_LINKS = "social_links"
    BRAND_DETAILS = "brand_details"


# Completing all of these marks the profile's setup as finished
REQUIRED_SETUP_STEPS = frozenset(
    {
        SetupStep.PROFILE_INFO,
        SetupStep.AVATAR,
        SetupStep.PAYMENT_METHOD,
        SetupStep.SHIPPING_ADDRESS,
    }
)
