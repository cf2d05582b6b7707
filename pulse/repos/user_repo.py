# pulse/repos/user_repo.py
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from pulse.data.models.user import UserModel


class UserRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_user(self, user_id: int) -> UserModel | None:
        return self.db.get(UserModel, user_id)

    def get_by_email(self, email: str) -> UserModel | None:
        return self.db.execute(
            select(UserModel).where(func.lower(UserModel.email) == email.lower())
        ).scalar_one_or_none()

    def get_by_apple_id(self, apple_id: str) -> UserModel | None:
        return self.db.execute(
            select(UserModel).where(UserModel.apple_id == apple_id)
        ).scalar_one_or_none()

    def create_user(self, user: UserModel) -> UserModel:
        self.db.add(user)
        self.db.flush()
        return user

    def count_all(self) -> int:
        return self.db.execute(select(func.count(UserModel.id))).scalar_one()
