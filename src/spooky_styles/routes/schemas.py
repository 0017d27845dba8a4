from marshmallow import EXCLUDE, Schema, fields, validate, validates, ValidationError

from spooky_styles.models.order import ORDER_STATUSES
from spooky_styles.models.product import CATEGORIES, THEMES
from spooky_styles.utils.validators import ValidationUtils


class CustomizationsSchema(Schema):
    color = fields.Str(load_default=None, allow_none=True, validate=validate.Length(max=64))
    accessories = fields.List(fields.Str(validate=validate.Length(max=64)), load_default=list)


class AddCartItemSchema(Schema):
    product_id = fields.UUID(required=True)
    quantity = fields.Int(required=True, strict=True, validate=validate.Range(min=1, max=999))
    customizations = fields.Nested(CustomizationsSchema, load_default=dict)


class UpdateCartItemSchema(Schema):
    quantity = fields.Int(required=True, strict=True, validate=validate.Range(min=0, max=999))
    customizations = fields.Nested(CustomizationsSchema, load_default=dict)


class RemoveCartItemSchema(Schema):
    customizations = fields.Nested(CustomizationsSchema, load_default=dict)


class GuestInfoSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    email = fields.Email(required=True)
    name = fields.Str(required=True, validate=validate.Length(min=1, max=200))
    address = fields.Str(required=True, validate=validate.Length(min=1, max=500))
    city = fields.Str(required=True, validate=validate.Length(min=1, max=100))
    state = fields.Str(required=True, validate=validate.Length(min=1, max=100))
    zip_code = fields.Str(required=True, validate=validate.Length(min=1, max=20))
    country = fields.Str(load_default="US", validate=validate.Length(min=2, max=56))


class AddressSchema(Schema):
    """Saved shipping address for a registered user"""

    class Meta:
        unknown = EXCLUDE

    phone = fields.Str(load_default=None, allow_none=True, validate=validate.Length(max=32))
    address = fields.Str(required=True, validate=validate.Length(min=5, max=500))
    city = fields.Str(required=True, validate=validate.Length(min=2, max=100))
    state = fields.Str(required=True, validate=validate.Length(min=2, max=100))
    zip_code = fields.Str(
        required=True,
        validate=validate.Regexp(r"^\d{5}(-\d{4})?$", error="Valid ZIP code is required"),
    )
    country = fields.Str(load_default="US", validate=validate.Length(min=2, max=56))


class CheckoutSchema(Schema):
    guest_info = fields.Nested(GuestInfoSchema, load_default=None, allow_none=True)


class ConfirmPaymentSchema(Schema):
    payment_intent_id = fields.Str(required=True, validate=validate.Length(min=1, max=255))


class OrderStatusSchema(Schema):
    status = fields.Str(required=True, validate=validate.OneOf(ORDER_STATUSES))


class ProductSchema(Schema):
    name = fields.Str(required=True, validate=validate.Length(min=1, max=255))
    description = fields.Str(load_default=None, allow_none=True)
    price_cents = fields.Int(required=True, strict=True, validate=validate.Range(min=1))
    promotional_price_cents = fields.Int(load_default=None, allow_none=True, strict=True)
    category = fields.Str(required=True, validate=validate.OneOf(CATEGORIES))
    theme = fields.Str(required=True, validate=validate.OneOf(THEMES))
    model_url = fields.Str(load_default=None, allow_none=True)
    thumbnail_url = fields.Str(required=True, validate=validate.Length(min=1))
    image_url = fields.Str(required=True, validate=validate.Length(min=1))
    ar_image_url = fields.Str(required=True, validate=validate.Length(min=1))
    stock_quantity = fields.Int(load_default=0, strict=True, validate=validate.Range(min=0))
    is_accessory = fields.Bool(load_default=False)


class ProductUpdateSchema(ProductSchema):
    """Partial update: only the fields present in the body are written."""

    description = fields.Str(allow_none=True)
    promotional_price_cents = fields.Int(allow_none=True, strict=True)
    model_url = fields.Str(allow_none=True)
    stock_quantity = fields.Int(strict=True, validate=validate.Range(min=0))
    is_accessory = fields.Bool()


class ProductColorSchema(Schema):
    color_name = fields.Str(required=True, validate=validate.Length(min=1, max=64))
    color_hex = fields.Str(required=True)

    @validates("color_hex")
    def validate_color_hex(self, value, **kwargs):
        if not ValidationUtils.validate_hex_color(value):
            raise ValidationError("Must be in format #RRGGBB")


class PaystackInitializeSchema(Schema):
    order_id = fields.UUID(required=True)
    email = fields.Email(required=True)


class PaystackRefundSchema(Schema):
    transaction = fields.Str(required=True, validate=validate.Length(min=1))
    amount = fields.Int(load_default=None, allow_none=True, strict=True, validate=validate.Range(min=1))


class InspirationSchema(Schema):
    name = fields.Str(required=True, validate=validate.Length(min=1, max=255))
    description = fields.Str(load_default=None, allow_none=True)
    image_url = fields.Str(load_default=None, allow_none=True)


class InspirationProductSchema(Schema):
    product_id = fields.UUID(required=True)
    display_order = fields.Int(load_default=0, strict=True, validate=validate.Range(min=0))
