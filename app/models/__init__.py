from .user import User
from .profile import Profile, SocialMediaAccount, ProfileStats
from .category import Category
from .listing import Listing
from .cart import ShoppingCart, CartItem
from .order import Order, Transaction
from .conversation import Conversation, Message
from .onboarding import BrandVerificationRequest, SetupProgress
from .resolution import Dispute, Return, RefundRequest
from .admin import AdminApproval, AdminAuditLog, SystemLog
from .storage import StorageBucket, StorageObject

__all__ = [
    "User",
    "Profile",
    "SocialMediaAccount",
    "ProfileStats",
    "Category",
    "Listing",
    "ShoppingCart",
    "CartItem",
    "Order",
    "Transaction",
    "Conversation",
    "Message",
    "BrandVerificationRequest",
    "SetupProgress",
    "Dispute",
    "Return",
    "RefundRequest",
    "AdminApproval",
    "AdminAuditLog",
    "SystemLog",
    "StorageBucket",
    "StorageObject",
]
