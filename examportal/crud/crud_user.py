# examportal/crud/crud_user.py

from typing import List, Optional

from sqlalchemy.orm import Session

from examportal.core.decorator import NotFoundError, db_exception
from examportal.models.user import User


class CRUDUser:
    def __init__(self, db: Session):
        self.db = db

    @db_exception
    def get_user(self, user_id: int) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFoundError("User not found")
        return user

    @db_exception
    def get_by_username(self, username: str) -> Optional[User]:
        return self.db.query(User).filter(User.username == username).first()

    @db_exception
    def list_users(self, role: Optional[str] = None) -> List[User]:
        query = self.db.query(User)
        if role:
            query = query.filter(User.role == role)
        return query.order_by(User.id).all()

    @db_exception
    def create_user(self, username: str, email: str, role: str) -> User:
        user = User(username=username, email=email, role=role, is_active=True)
        self.db.add(user)
        self.db.flush()
        return user

    @db_exception
    def update_role(self, user: User, role: str) -> User:
        user.role = role
        self.db.flush()
        return user

    @db_exception
    def set_active(self, user: User, is_active: bool) -> User:
        user.is_active = is_active
        self.db.flush()
        return user
