import logging
from typing import Any, Dict, Optional

from spooky_styles.core.exceptions import ForbiddenError, NotFoundError, UnauthorizedError
from spooky_styles.models.user import User
from spooky_styles.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)


class UserService:

    def __init__(self, user_repository: UserRepository):
        self.user_repo = user_repository

    def require_admin(self, user_id: Optional[str]) -> User:
        """Resolve the caller and insist on the admin flag"""
        if not user_id:
            raise UnauthorizedError("Missing X-User-Id header")

        user = self.user_repo.find_by_id(user_id)
        if user is None or not user.is_admin:
            logger.warning(f"Admin access denied for user {user_id}")
            raise ForbiddenError("Admin access required")
        return user

    def get_profile(self, user_id: str) -> User:
        user = self.user_repo.find_by_id(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    def update_address(self, user_id: str, address: Dict[str, Any]) -> User:
        """Save the shipping address shown on the profile and used to pre-fill checkout"""
        user = self.user_repo.update_address(user_id, address)
        if user is None:
            raise NotFoundError("User", user_id)
        logger.info(f"Saved shipping address for user {user_id} ({address['city']}, {address['state']})")
        return user
