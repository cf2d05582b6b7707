# pulse/services/band_service.py
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from pulse.data.models.band import BandModel
from pulse.domain.errors import NotFoundError
from pulse.domain.schemas import BandCreate, BandUpdate
from pulse.repos.band_repo import BandRepo
from pulse.utils.logging import get_logger

logger = get_logger(__name__)

FEATURED_LIMIT = 6
SEARCH_LIMIT = 20
LIMITED_STOCK_THRESHOLD = 10
ALL_SIZES = "All sizes"

SPORT_MATERIALS = ["Fluoroelastomer", "Silicone", "Reinforced Silicone"]
PREMIUM_MATERIALS = ["Premium Leather", "Premium Nylon"]


class BandService:
    """Band catalog: public queries plus admin create/update/soft delete."""

    def __init__(self, db: Session):
        self.repo = BandRepo(db)

    #query
    def list_bands(self):
        return self.repo.list_active()

    def get_band(self, band_id: int) -> BandModel:
        band = self.repo.get_active(band_id)
        if not band:
            raise NotFoundError("Band not found")
        return band

    def featured_bands(self):
        return self.repo.list_featured(FEATURED_LIMIT)

    def bands_by_category(self, category: str):
        category = category.lower()
        if category == "liquid-glass":
            return self.repo.list_liquid_glass()
        if category == "sport":
            return self.repo.list_by_materials(SPORT_MATERIALS)
        if category == "premium":
            return self.repo.list_by_materials(PREMIUM_MATERIALS)
        if category == "limited":
            return self.repo.list_low_stock(LIMITED_STOCK_THRESHOLD)

        #unknown category falls back to the whole catalog
        return self.repo.list_active()

    def compatible_bands(self, size: str):
        needle = size.lower()
        return [
            band
            for band in self.repo.list_cheapest_first()
            if any(needle in c.lower() or c == ALL_SIZES for c in (band.compatibilities or []))
        ]

    def search_bands(self, query: str):
        return self.repo.search(query.strip(), SEARCH_LIMIT)

    #commands (admin)
    def create_band(self, data: BandCreate) -> BandModel:
        band = BandModel(**data.model_dump())
        try:
            self.repo.add(band)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Band {band.id} created: {band.name}")
        return band

    def update_band(self, band_id: int, data: BandUpdate) -> BandModel:
        band = self.repo.get_active(band_id)
        if not band:
            raise NotFoundError("Band not found")

        changes = data.model_dump(exclude_unset=True)
        for field, value in changes.items():
            setattr(band, field, value)
        band.updated_at = datetime.now(timezone.utc)

        try:
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Band {band_id} updated: {sorted(changes)}")
        return band

    def delete_band(self, band_id: int) -> None:
        band = self.repo.get_active(band_id)
        if not band:
            raise NotFoundError("Band not found")

        band.active = False
        band.updated_at = datetime.now(timezone.utc)
        self.repo.commit()

        logger.info(f"Band {band_id} deactivated")
