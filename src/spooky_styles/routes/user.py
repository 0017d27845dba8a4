import logging

from flask import Blueprint

from spooky_styles.routes.schemas import AddressSchema
from spooky_styles.routes.utils import get_current_user_id, get_service, load_body, success_response
from spooky_styles.services.user_service import UserService

logger = logging.getLogger(__name__)

user_bp = Blueprint("user", __name__)

_address_schema = AddressSchema()


@user_bp.route("/profile", methods=["GET"])
def get_profile():
    """The caller's profile, including the saved shipping address."""
    user = get_service(UserService).get_profile(get_current_user_id())
    return success_response(user.to_dict())


@user_bp.route("/address", methods=["PUT"])
def update_address():
    user_id = get_current_user_id()
    data = load_body(_address_schema)
    user = get_service(UserService).update_address(user_id, data)
    return success_response(user.to_dict(), "Address saved successfully")
