import logging

from flask import Blueprint, request

from spooky_styles.routes.schemas import ProductColorSchema, ProductSchema, ProductUpdateSchema
from spooky_styles.routes.utils import (
    get_service,
    load_body,
    parse_bool,
    parse_int,
    require_admin,
    success_response,
)
from spooky_styles.services.product_service import ProductService

logger = logging.getLogger(__name__)

products_bp = Blueprint("products", __name__)

_create_schema = ProductSchema()
_update_schema = ProductUpdateSchema()
_color_schema = ProductColorSchema()


@products_bp.route("", methods=["GET"])
def list_products():
    """
    List products, newest first.

    Query params:
        category     -- wig | hat | mask | accessory | makeup
        theme        -- witch | zombie | vampire | skeleton | ghost
        search       -- case-insensitive match on name or description
        is_accessory -- true | false
    """
    products = get_service(ProductService).list_products(
        category=request.args.get("category") or None,
        theme=request.args.get("theme") or None,
        search=request.args.get("search") or None,
        is_accessory=parse_bool(request.args.get("is_accessory")),
    )
    return success_response({"products": [p.to_dict() for p in products], "count": len(products)})


@products_bp.route("/search", methods=["GET"])
def search_products():
    keyword = request.args.get("q", "")
    products = get_service(ProductService).search_products(keyword)
    return success_response({"products": [p.to_dict() for p in products], "count": len(products), "query": keyword.strip()})


@products_bp.route("/admin/low-stock", methods=["GET"])
def low_stock():
    require_admin()
    threshold = parse_int(request.args.get("threshold"), default=10, field_name="threshold")
    products = get_service(ProductService).low_stock(threshold)
    return success_response({"products": [p.to_dict() for p in products], "count": len(products), "threshold": threshold})


@products_bp.route("/admin/out-of-stock", methods=["GET"])
def out_of_stock():
    require_admin()
    products = get_service(ProductService).out_of_stock()
    return success_response({"products": [p.to_dict() for p in products], "count": len(products)})


@products_bp.route("/<uuid:product_id>", methods=["GET"])
def get_product(product_id):
    product = get_service(ProductService).get_product(str(product_id))
    return success_response(product.to_dict())


@products_bp.route("", methods=["POST"])
def create_product():
    admin = require_admin()
    data = load_body(_create_schema)
    product = get_service(ProductService).create_product(data)
    logger.info(f"Admin {admin.id} created product {product.id}")
    return success_response(product.to_dict(), "Product created", 201)


@products_bp.route("/<uuid:product_id>", methods=["PUT"])
def update_product(product_id):
    require_admin()
    data = load_body(_update_schema, partial=True)
    product = get_service(ProductService).update_product(str(product_id), data)
    return success_response(product.to_dict(), "Product updated")


@products_bp.route("/<uuid:product_id>", methods=["DELETE"])
def delete_product(product_id):
    admin = require_admin()
    get_service(ProductService).delete_product(str(product_id))
    logger.info(f"Admin {admin.id} deleted product {product_id}")
    return success_response(None, "Product deleted")


@products_bp.route("/<uuid:product_id>/colors", methods=["POST"])
def add_color(product_id):
    require_admin()
    data = load_body(_color_schema)
    color = get_service(ProductService).add_color(str(product_id), data["color_name"], data["color_hex"])
    return success_response(color.to_dict(), "Color added", 201)


@products_bp.route("/colors/<uuid:color_id>", methods=["DELETE"])
def delete_color(color_id):
    require_admin()
    get_service(ProductService).delete_color(str(color_id))
    return success_response(None, "Color deleted")
