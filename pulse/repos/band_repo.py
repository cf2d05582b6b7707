# pulse/repos/band_repo.py
from typing import List, Sequence

from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session

from pulse.data.models.band import BandModel
from pulse.repos.filters import LIKE_ESCAPE, contains_pattern


class BandRepo:
    def __init__(self, db: Session):
        self.db = db

    def _active(self):
        return select(BandModel).where(BandModel.active.is_(True))

    def get(self, band_id: int) -> BandModel | None:
        return self.db.get(BandModel, band_id)

    def get_active(self, band_id: int) -> BandModel | None:
        return self.db.execute(
            self._active().where(BandModel.id == band_id)
        ).scalar_one_or_none()

    def list_active(self) -> Sequence[BandModel]:
        stmt = self._active().order_by(
            BandModel.featured.desc(), BandModel.created_at.desc(), BandModel.id.desc()
        )
        return self.db.execute(stmt).scalars().all()

    def list_featured(self, limit: int) -> Sequence[BandModel]:
        stmt = (
            self._active()
            .where(BandModel.featured.is_(True))
            .order_by(BandModel.created_at.desc(), BandModel.id.desc())
            .limit(limit)
        )
        return self.db.execute(stmt).scalars().all()

    def list_liquid_glass(self) -> Sequence[BandModel]:
        stmt = self._active().where(BandModel.liquid_glass.is_(True)).order_by(BandModel.featured.desc(), BandModel.id)
        return self.db.execute(stmt).scalars().all()

    def list_by_materials(self, materials: List[str]) -> Sequence[BandModel]:
        stmt = self._active().where(BandModel.material.in_(materials)).order_by(BandModel.featured.desc(), BandModel.id)
        return self.db.execute(stmt).scalars().all()

    def list_low_stock(self, threshold: int) -> Sequence[BandModel]:
        stmt = self._active().where(BandModel.stock < threshold).order_by(BandModel.stock, BandModel.id)
        return self.db.execute(stmt).scalars().all()

    def list_cheapest_first(self) -> Sequence[BandModel]:
        stmt = self._active().order_by(BandModel.featured.desc(), BandModel.price, BandModel.id)
        return self.db.execute(stmt).scalars().all()

    def search(self, query: str, limit: int) -> Sequence[BandModel]:
        pattern = contains_pattern(query)
        stmt = (
            self._active()
            .where(
                or_(
                    func.lower(BandModel.name).like(pattern, escape=LIKE_ESCAPE),
                    func.lower(func.coalesce(BandModel.description, "")).like(pattern, escape=LIKE_ESCAPE),
                    func.lower(func.coalesce(BandModel.color, "")).like(pattern, escape=LIKE_ESCAPE),
                    func.lower(func.coalesce(BandModel.material, "")).like(pattern, escape=LIKE_ESCAPE),
                )
            )
            .order_by(BandModel.featured.desc(), BandModel.id)
            .limit(limit)
        )
        return self.db.execute(stmt).scalars().all()

    def count_active(self) -> int:
        return self.db.execute(
            select(func.count(BandModel.id)).where(BandModel.active.is_(True))
        ).scalar_one()

    def add(self, band: BandModel) -> BandModel:
        self.db.add(band)
        self.db.flush()
        return band

    def decrement_stock(self, band_id: int, quantity: int) -> int:
        """Conditional decrement; returns affected rows (0 when stock ran out)."""
        result = self.db.execute(
            update(BandModel)
            .where(BandModel.id == band_id, BandModel.stock >= quantity)
            .values(stock=BandModel.stock - quantity)
        )
        return result.rowcount

    def restore_stock(self, band_id: int, quantity: int) -> int:
        result = self.db.execute(
            update(BandModel)
            .where(BandModel.id == band_id)
            .values(stock=BandModel.stock + quantity)
        )
        return result.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
