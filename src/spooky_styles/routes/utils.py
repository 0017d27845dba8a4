import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Type, TypeVar

from flask import current_app, g, jsonify, request
from marshmallow import Schema
from marshmallow import ValidationError as SchemaValidationError

from spooky_styles.core.exceptions import BadRequestError, UnauthorizedError, ValidationError
from spooky_styles.models.cart import CartOwner
from spooky_styles.models.user import User
from spooky_styles.services.user_service import UserService
from spooky_styles.utils.validators import ValidationUtils

T = TypeVar("T")


def success_response(data, message: Optional[str] = None, status: int = 200):
    """Consistent success response envelope."""
    response = {
        "success": True,
        "data": data,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if message:
        response["message"] = message

    request_id = getattr(g, "request_id", None)
    if request_id:
        response["request_id"] = request_id

    return jsonify(response), status


def get_service(service_class: Type[T]) -> T:
    """Look up a repository or service in the app's dependency container."""
    return current_app.extensions["container"].get(service_class)


def load_body(schema: Schema, partial: bool = False) -> Dict[str, Any]:
    """Parse the JSON body with a marshmallow schema."""
    if not request.is_json:
        raise BadRequestError("Content-Type must be application/json.")

    payload = request.get_json(silent=True)
    if payload is None:
        raise BadRequestError("Request body must be valid JSON.")

    try:
        return schema.load(payload, partial=partial)
    except SchemaValidationError as err:
        raise ValidationError("Validation failed", _flatten_messages(err.messages))


def load_optional_body(schema: Schema) -> Dict[str, Any]:
    """Like load_body, but an empty body loads as the schema's defaults."""
    if not request.get_data():
        return schema.load({})
    return load_body(schema)


def _flatten_messages(messages, prefix: str = "") -> Dict[str, list]:
    flat: Dict[str, list] = {}
    if isinstance(messages, list):
        flat[prefix or "_schema"] = [str(m) for m in messages]
        return flat
    for key, value in messages.items():
        name = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, dict):
            flat.update(_flatten_messages(value, name))
        else:
            flat[name] = [str(v) for v in value]
    return flat


def parse_int(
    v,
    default=None,
    min_val: Optional[int] = None,
    max_val: Optional[int] = None,
    field_name: str = "value",
) -> Optional[int]:
    """Parse an integer query argument with optional range validation."""
    if v is None or v == "":
        return default
    try:
        result = int(v)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field_name}: must be a valid integer", {field_name: ["Must be an integer"]})
    if min_val is not None and result < min_val:
        raise ValidationError(f"{field_name} must be at least {min_val}", {field_name: [f"Must be >= {min_val}"]})
    if max_val is not None and result > max_val:
        raise ValidationError(f"{field_name} cannot exceed {max_val}", {field_name: [f"Must be <= {max_val}"]})
    return result


def parse_bool(v, default: Optional[bool] = None) -> Optional[bool]:
    """Parse a boolean value from a query string."""
    if v is None or v == "":
        return default
    if isinstance(v, bool):
        return v
    return str(v).lower() in ("1", "true", "t", "yes", "y", "on")


def get_current_user_id(required: bool = True) -> Optional[str]:
    """Extract and validate the user id from the X-User-Id request header."""
    uid = request.headers.get("X-User-Id")
    if not uid:
        if required:
            raise UnauthorizedError("Missing X-User-Id header.")
        return None
    if not ValidationUtils.validate_uuid(uid):
        raise BadRequestError("Invalid X-User-Id header: must be a UUID.")
    return str(uuid.UUID(uid))


def get_session_id() -> Optional[str]:
    """Extract and validate the guest session id from X-Session-Id."""
    sid = request.headers.get("X-Session-Id")
    if not sid:
        return None
    if not ValidationUtils.validate_session_id(sid):
        raise BadRequestError("Invalid X-Session-Id header: 8-128 characters of letters, digits, '-' or '_'.")
    return sid


def get_cart_owner() -> CartOwner:
    """The user when X-User-Id is present, otherwise the guest session."""
    user_id = get_current_user_id(required=False)
    if user_id:
        return CartOwner(user_id=user_id)
    session_id = get_session_id()
    if session_id:
        return CartOwner(session_id=session_id)
    raise BadRequestError("X-User-Id or X-Session-Id header is required.")


def require_admin() -> User:
    """Resolve the caller from X-User-Id and insist on admin rights."""
    return get_service(UserService).require_admin(get_current_user_id(required=False))
