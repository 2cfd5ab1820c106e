import random
import re
import string
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from slugify import slugify as python_slugify

# Fixed marketplace commission; every fee in the system comes from calculate_platform_fee
PLATFORM_FEE_RATE = Decimal("0.05")

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 30
USERNAME_PATTERN = re.compile(r"^[a-z0-9_]{3,30}$")


def random_suffix(length: int = 4) -> str:
    return ''.join(random.choices(string.digits, k=length))


def generate_order_number(today: datetime = None) -> str:
    """Generate a candidate order number, ORD-<yyyymmdd>-<4 random digits>.

    Not unique on its own; callers must check for collisions.
    """
    today = today or datetime.now(timezone.utc)
    return f'ORD-{today.strftime("%Y%m%d")}-{random_suffix()}'


def calculate_platform_fee(amount) -> Decimal:
    """Platform fee for a gross amount, rounded half-up to cents"""
    amount = Decimal(str(amount))
    if amount < 0:
        raise ValueError("Amount cannot be negative")
    return (amount * PLATFORM_FEE_RATE).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def slugify(text: str) -> str:
    """Generate URL-friendly slug"""
    return python_slugify(text)


def base_username(email: str) -> str:
    """Username candidate from the local part of an email address"""
    local = (email or "").split("@", 1)[0]
    candidate = python_slugify(local, separator="_", lowercase=True)
    candidate = re.sub(r"[^a-z0-9_]", "", candidate)[:USERNAME_MAX_LENGTH]
    if len(candidate) < USERNAME_MIN_LENGTH:
        candidate = (candidate + "_user")[:USERNAME_MAX_LENGTH]
    return candidate


def is_valid_username(username: str) -> bool:
    return bool(username and USERNAME_PATTERN.match(username))
