from typing import Optional, Dict, Any
import logging

from spooky_styles.repositories.base import BaseRepository
from spooky_styles.models.user import User

logger = logging.getLogger(__name__)

USER_COLUMNS = "id, email, name, is_admin, phone, address, city, state, zip_code, country, created_at"


class UserRepository(BaseRepository[User]):

    @property
    def table_name(self) -> str:
        return "users"

    def find_by_id(self, user_id: str) -> Optional[User]:
        row = self.execute_single_query(f"SELECT {USER_COLUMNS} FROM users WHERE id = :id", {"id": user_id})
        return self._row_to_user(row) if row else None

    def update_address(self, user_id: str, address: Dict[str, Any]) -> Optional[User]:
        """Overwrite the saved shipping address; None when the user does not exist"""
        row = self.execute_returning(
            f"""
            UPDATE users
            SET phone = :phone, address = :address, city = :city, state = :state,
                zip_code = :zip_code, country = :country, updated_at = NOW()
            WHERE id = :id
            RETURNING {USER_COLUMNS}
            """,
            {
                "id": user_id,
                "phone": address.get("phone"),
                "address": address["address"],
                "city": address["city"],
                "state": address["state"],
                "zip_code": address["zip_code"],
                "country": address.get("country") or "US",
            },
        )
        return self._row_to_user(row) if row else None

    def _row_to_user(self, row: Dict[str, Any]) -> User:
        return User(
            id=str(row["id"]),
            email=row["email"],
            name=row["name"],
            is_admin=row["is_admin"],
            phone=row["phone"],
            address=row["address"],
            city=row["city"],
            state=row["state"],
            zip_code=row["zip_code"],
            country=row["country"] or "US",
            created_at=row["created_at"],
        )
