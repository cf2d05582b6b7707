# pulse/services/watch_service.py
from datetime import datetime, timezone
from typing import Dict, List

from sqlalchemy.orm import Session

from pulse.data.models.watch import WatchModel
from pulse.domain.errors import NotFoundError, ValidationError
from pulse.domain.schemas import WatchCreate, WatchUpdate
from pulse.repos.watch_repo import WatchRepo
from pulse.services.band_service import BandService
from pulse.utils.logging import get_logger

logger = get_logger(__name__)

BANDS_PER_SIZE = 5
MAX_COMPARE = 4

COMPARISON_SPECS = [
    {"name": "Price", "key": "price", "type": "currency"},
    {"name": "Release Year", "key": "release_year", "type": "number"},
    {"name": "Sizes Available", "key": "sizes", "type": "array"},
    {"name": "Color Options", "key": "colors", "type": "array-count"},
    {"name": "Key Features", "key": "features", "type": "array-count"},
]


class WatchService:
    def __init__(self, db: Session):
        self.repo = WatchRepo(db)
        self.bands = BandService(db)

    def list_watches(self):
        return self.repo.list_active()

    def get_watch(self, watch_id: int) -> WatchModel:
        watch = self.repo.get_active(watch_id)
        if not watch:
            raise NotFoundError("Watch not found")
        return watch

    def watches_by_series(self, series: str):
        return self.repo.list_by_name(series)

    def create_watch(self, data: WatchCreate) -> WatchModel:
        values = data.model_dump()
        if values.get("release_year") is None:
            values["release_year"] = datetime.now(timezone.utc).year

        watch = WatchModel(**values)
        try:
            self.repo.add(watch)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Watch {watch.id} created: {watch.name}")
        return watch

    def update_watch(self, watch_id: int, data: WatchUpdate) -> WatchModel:
        changes = data.model_dump(exclude_unset=True)
        if not changes:
            raise ValidationError("No fields to update")

        watch = self.get_watch(watch_id)
        for field, value in changes.items():
            setattr(watch, field, value)
        watch.updated_at = datetime.now(timezone.utc)

        try:
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Watch {watch_id} updated: {sorted(changes)}")
        return watch

    def compatibility(self, watch_id: int) -> Dict:
        """For every size of the watch, the first few compatible bands."""
        watch = self.get_watch(watch_id)
        by_size = {
            size: list(self.bands.compatible_bands(size))[:BANDS_PER_SIZE]
            for size in (watch.sizes or [])
        }
        return {"watch": watch, "compatible_bands": by_size}

    def compare(self, ids: List[int]) -> Dict:
        if not 1 <= len(ids) <= MAX_COMPARE:
            raise ValidationError(f"Provide between 1 and {MAX_COMPARE} watch IDs to compare")

        watches = self.repo.list_by_ids(ids)
        return {"watches": watches, "comparison": COMPARISON_SPECS}
