from marshmallow import fields, validate, validates_schema, ValidationError
from app.extensions import ma
from app.enums import (
    AccountType,
    DisputeStatus,
    OrderStatus,
    RefundStatus,
    ReturnStatus,
    SetupStep,
    TrackingStatus,
    VerificationStatus,
)
from app.utils.helpers import USERNAME_PATTERN


def _values(enum_cls, exclude=()):
    return [member.value for member in enum_cls if member not in exclude]


BRAND_CATEGORIES = [
    "clothing",
    "shoes",
    "bags",
    "accessories",
    "jewelry",
    "beauty",
    "vintage",
    "sportswear",
    "kids",
    "other",
]


class RegistrationSchema(ma.Schema):
    email = fields.Email(required=True)
    password = fields.Str(required=True, validate=validate.Length(min=8, max=128), load_only=True)
    full_name = fields.Str(validate=validate.Length(max=255))
    account_type = fields.Str(
        load_default=AccountType.PERSONAL.value, validate=validate.OneOf(_values(AccountType))
    )
    brand_name = fields.Str(validate=validate.Length(min=2, max=255))
    brand_category = fields.Str(validate=validate.OneOf(BRAND_CATEGORIES))
    brand_website = fields.Url(validate=validate.Length(max=500))
    accept_terms = fields.Bool(required=True, validate=validate.Equal(True))

    @validates_schema
    def validate_brand_fields(self, data, **kwargs):
        if data.get("account_type") != AccountType.BRAND.value:
            return
        errors = {}
        if not data.get("brand_name"):
            errors["brand_name"] = ["Brand name is required for brand accounts."]
        if not data.get("brand_category"):
            errors["brand_category"] = ["Brand category is required for brand accounts."]
        if errors:
            raise ValidationError(errors)


class LoginSchema(ma.Schema):
    email = fields.Email(required=True)
    password = fields.Str(required=True, load_only=True)


class EmailVerificationSchema(ma.Schema):
    token = fields.Str(required=True)


class ProfileUpdateSchema(ma.Schema):
    username = fields.Str(validate=validate.Regexp(USERNAME_PATTERN, error="Use 3-30 lowercase letters, digits or underscores."))
    full_name = fields.Str(validate=validate.Length(max=255))
    bio = fields.Str(validate=validate.Length(max=1000))
    avatar_url = fields.Str(validate=validate.Length(max=500))
    cover_url = fields.Str(validate=validate.Length(max=500))
    location = fields.Str(validate=validate.Length(max=255))


class SocialMediaAccountSchema(ma.Schema):
    platform = fields.Str(required=True, validate=validate.OneOf(["instagram", "tiktok", "facebook", "twitter", "youtube", "pinterest", "website"]))
    username = fields.Str(required=True, validate=validate.Length(min=1, max=100))
    url = fields.Url()


class SetupProgressSchema(ma.Schema):
    step = fields.Str(required=True, validate=validate.OneOf(_values(SetupStep)))
    completed = fields.Bool(load_default=True)
    data = fields.Dict()


class BrandVerificationSchema(ma.Schema):
    brand_name = fields.Str(required=True, validate=validate.Length(min=2, max=255))
    brand_category = fields.Str(required=True, validate=validate.OneOf(BRAND_CATEGORIES))
    brand_website = fields.Url()
    documents = fields.List(fields.Str(), load_default=list)


class BrandReviewSchema(ma.Schema):
    status = fields.Str(
        required=True,
        validate=validate.OneOf(_values(VerificationStatus, exclude=(VerificationStatus.PENDING,))),
    )
    admin_notes = fields.Str()


class ListingCreateSchema(ma.Schema):
    title = fields.Str(required=True, validate=validate.Length(min=3, max=255))
    description = fields.Str()
    price = fields.Decimal(required=True, places=2, validate=validate.Range(min=0, min_inclusive=False))
    category_id = fields.Str()
    condition = fields.Str(validate=validate.OneOf(["new_with_tags", "new_without_tags", "like_new", "good", "fair"]))
    size = fields.Str(validate=validate.Length(max=50))
    brand = fields.Str(validate=validate.Length(max=100))
    publish = fields.Bool(load_default=False)


class ListingUpdateSchema(ma.Schema):
    title = fields.Str(validate=validate.Length(min=3, max=255))
    description = fields.Str()
    price = fields.Decimal(places=2, validate=validate.Range(min=0, min_inclusive=False))
    category_id = fields.Str()
    condition = fields.Str(validate=validate.OneOf(["new_with_tags", "new_without_tags", "like_new", "good", "fair"]))
    size = fields.Str(validate=validate.Length(max=50))
    brand = fields.Str(validate=validate.Length(max=100))
    status = fields.Str(validate=validate.OneOf(["draft", "active", "archived"]))


class OrderCreateSchema(ma.Schema):
    listing_id = fields.Str(required=True)
    shipping_address = fields.Str(required=True, validate=validate.Length(min=5))
    shipping_cost = fields.Decimal(places=2, load_default=0, validate=validate.Range(min=0))


class OrderStatusSchema(ma.Schema):
    status = fields.Str(required=True, validate=validate.OneOf(_values(OrderStatus)))
    tracking_number = fields.Str(validate=validate.Length(max=100))
    tracking_status = fields.Str(validate=validate.OneOf(_values(TrackingStatus)))


class ConversationCreateSchema(ma.Schema):
    listing_id = fields.Str(required=True)
    body = fields.Str(required=True, validate=validate.Length(min=1, max=5000))


class MessageCreateSchema(ma.Schema):
    body = fields.Str(required=True, validate=validate.Length(min=1, max=5000))


class DisputeCreateSchema(ma.Schema):
    order_id = fields.Str(required=True)
    reason = fields.Str(required=True, validate=validate.OneOf(
        ["item_not_received", "item_not_as_described", "damaged", "counterfeit", "other"]
    ))
    description = fields.Str()


class DisputeUpdateSchema(ma.Schema):
    status = fields.Str(required=True, validate=validate.OneOf(_values(DisputeStatus)))
    resolution = fields.Str()


class ReturnCreateSchema(ma.Schema):
    order_id = fields.Str(required=True)
    reason = fields.Str(required=True, validate=validate.Length(min=1, max=100))
    description = fields.Str()


class ReturnUpdateSchema(ma.Schema):
    status = fields.Str(required=True, validate=validate.OneOf(_values(ReturnStatus)))
    tracking_number = fields.Str(validate=validate.Length(max=100))


class RefundCreateSchema(ma.Schema):
    order_id = fields.Str(required=True)
    amount = fields.Decimal(required=True, places=2, validate=validate.Range(min=0, min_inclusive=False))
    reason = fields.Str()


class RefundUpdateSchema(ma.Schema):
    status = fields.Str(required=True, validate=validate.OneOf(_values(RefundStatus)))


class StorageObjectSchema(ma.Schema):
    bucket = fields.Str(required=True)
    name = fields.Str(required=True, validate=validate.Length(min=3, max=1024))
    mime_type = fields.Str(required=True)
    size = fields.Int(required=True, validate=validate.Range(min=1))


class PromoteSchema(ma.Schema):
    user_id = fields.Str(required=True)
    notes = fields.Str()
