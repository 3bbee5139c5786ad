# examportal/services/user.py
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from examportal.core.decorator import InvalidInputError
from examportal.crud.crud_stats import CRUDStats
from examportal.crud.crud_user import CRUDUser
from examportal.models.user import User

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, db: Session):
        self.db = db
        self.users = CRUDUser(db)
        self.stats = CRUDStats(db)

    def create_user(self, username: str, email: str, role: str) -> User:
        """Create a user together with a zeroed statistics row"""
        try:
            if self.users.get_by_username(username):
                raise InvalidInputError("Username already taken")

            user = self.users.create_user(username=username, email=email, role=role)
            self.stats.init_stats(user.id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(user)
        logger.info(f"User {user.id} ({user.username}) created with role {role}")
        return user

    def get_user(self, user_id: int) -> User:
        return self.users.get_user(user_id)

    def list_users(self, role: Optional[str] = None) -> List[User]:
        return self.users.list_users(role=role)

    def update_role(self, user_id: int, role: str) -> User:
        try:
            user = self.users.get_user(user_id)
            self.users.update_role(user, role)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(user)
        logger.info(f"User {user_id} role changed to {role}")
        return user

    def set_active(self, user_id: int, is_active: bool) -> User:
        try:
            user = self.users.get_user(user_id)
            self.users.set_active(user, is_active)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(user)
        logger.info(f"User {user_id} {'activated' if is_active else 'deactivated'}")
        return user
