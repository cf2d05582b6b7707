# pulse/repos/watch_repo.py
from typing import List, Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from pulse.data.models.watch import WatchModel
from pulse.repos.filters import LIKE_ESCAPE, contains_pattern


class WatchRepo:
    def __init__(self, db: Session):
        self.db = db

    def _active(self):
        return select(WatchModel).where(WatchModel.active.is_(True))

    def get_active(self, watch_id: int) -> WatchModel | None:
        return self.db.execute(
            self._active().where(WatchModel.id == watch_id)
        ).scalar_one_or_none()

    def list_active(self) -> Sequence[WatchModel]:
        stmt = self._active().order_by(
            WatchModel.release_year.desc(), WatchModel.price.desc(), WatchModel.id
        )
        return self.db.execute(stmt).scalars().all()

    def list_by_name(self, fragment: str) -> Sequence[WatchModel]:
        stmt = (
            self._active()
            .where(func.lower(WatchModel.name).like(contains_pattern(fragment), escape=LIKE_ESCAPE))
            .order_by(WatchModel.release_year.desc(), WatchModel.price.desc(), WatchModel.id)
        )
        return self.db.execute(stmt).scalars().all()

    def list_by_ids(self, ids: List[int]) -> Sequence[WatchModel]:
        stmt = self._active().where(WatchModel.id.in_(ids)).order_by(WatchModel.price.desc(), WatchModel.id)
        return self.db.execute(stmt).scalars().all()

    def count_active(self) -> int:
        return self.db.execute(
            select(func.count(WatchModel.id)).where(WatchModel.active.is_(True))
        ).scalar_one()

    def add(self, watch: WatchModel) -> WatchModel:
        self.db.add(watch)
        self.db.flush()
        return watch

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
