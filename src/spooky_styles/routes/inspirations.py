import logging

from flask import Blueprint

from spooky_styles.routes.schemas import InspirationProductSchema, InspirationSchema
from spooky_styles.routes.utils import (
    get_cart_owner,
    get_service,
    load_body,
    require_admin,
    success_response,
)
from spooky_styles.services.inspiration_service import InspirationService

logger = logging.getLogger(__name__)

inspirations_bp = Blueprint("inspirations", __name__)

_create_schema = InspirationSchema()
_link_schema = InspirationProductSchema()


@inspirations_bp.route("", methods=["GET"])
def list_inspirations():
    inspirations = get_service(InspirationService).list_inspirations()
    return success_response({
        "inspirations": [i.to_dict(include_products=False) for i in inspirations],
        "count": len(inspirations),
    })


@inspirations_bp.route("/<uuid:inspiration_id>", methods=["GET"])
def get_inspiration(inspiration_id):
    inspiration = get_service(InspirationService).get_inspiration(str(inspiration_id))
    return success_response(inspiration.to_dict())


@inspirations_bp.route("/<uuid:inspiration_id>/products", methods=["GET"])
def get_inspiration_products(inspiration_id):
    products = get_service(InspirationService).get_inspiration_products(str(inspiration_id))
    return success_response({"products": [p.to_dict() for p in products], "count": len(products)})


@inspirations_bp.route("/<uuid:inspiration_id>/add-to-cart", methods=["POST"])
def add_inspiration_to_cart(inspiration_id):
    """Add one of each in-stock product of the inspiration to the cart."""
    owner = get_cart_owner()
    result = get_service(InspirationService).add_inspiration_to_cart(str(inspiration_id), owner)

    message = f"Added {result['added_count']} items to cart"
    if result["skipped_product_ids"]:
        message += f", skipped {len(result['skipped_product_ids'])} unavailable"

    return success_response(
        {
            "cart": result["cart"].to_dict(),
            "added_count": result["added_count"],
            "skipped_product_ids": result["skipped_product_ids"],
        },
        message,
    )


@inspirations_bp.route("", methods=["POST"])
def create_inspiration():
    require_admin()
    data = load_body(_create_schema)
    inspiration = get_service(InspirationService).create_inspiration(
        data["name"], data["description"], data["image_url"]
    )
    return success_response(inspiration.to_dict(), "Inspiration created", 201)


@inspirations_bp.route("/<uuid:inspiration_id>/products", methods=["POST"])
def link_product(inspiration_id):
    require_admin()
    data = load_body(_link_schema)
    inspiration = get_service(InspirationService).link_product(
        str(inspiration_id), str(data["product_id"]), data["display_order"]
    )
    return success_response(inspiration.to_dict(), "Product linked to inspiration")
