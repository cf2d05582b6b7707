# pulse/api/routers/bands.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from pulse.api.deps import get_db, require_admin
from pulse.domain.schemas import BandCreate, BandOut, BandUpdate, Envelope, ListEnvelope
from pulse.services.band_service import BandService

router = APIRouter(prefix="/api/bands", tags=["bands"])


def get_service(db: Session):
    return BandService(db)


def _listing(bands) -> dict:
    bands = list(bands)
    return {"success": True, "data": bands, "count": len(bands)}


@router.get("", response_model=ListEnvelope[List[BandOut]])
def list_bands(db: Session = Depends(get_db)):
    return _listing(get_service(db).list_bands())


@router.get("/featured", response_model=ListEnvelope[List[BandOut]])
def featured_bands(db: Session = Depends(get_db)):
    return _listing(get_service(db).featured_bands())


@router.get("/category/{category}", response_model=ListEnvelope[List[BandOut]])
def bands_by_category(category: str, db: Session = Depends(get_db)):
    return _listing(get_service(db).bands_by_category(category))


@router.get("/compatible/{size}", response_model=ListEnvelope[List[BandOut]])
def compatible_bands(size: str, db: Session = Depends(get_db)):
    return _listing(get_service(db).compatible_bands(size))


@router.get("/search/{query}", response_model=ListEnvelope[List[BandOut]])
def search_bands(query: str, db: Session = Depends(get_db)):
    return _listing(get_service(db).search_bands(query))


@router.get("/{band_id}", response_model=Envelope[BandOut])
def get_band(band_id: int, db: Session = Depends(get_db)):
    return {"success": True, "data": get_service(db).get_band(band_id)}


#admin
@router.post("", response_model=Envelope[BandOut], status_code=201, dependencies=[Depends(require_admin)])
def create_band(payload: BandCreate, db: Session = Depends(get_db)):
    band = get_service(db).create_band(payload)
    return {"success": True, "data": band, "message": "Band created successfully"}


@router.put("/{band_id}", response_model=Envelope[BandOut], dependencies=[Depends(require_admin)])
def update_band(band_id: int, payload: BandUpdate, db: Session = Depends(get_db)):
    band = get_service(db).update_band(band_id, payload)
    return {"success": True, "data": band, "message": "Band updated successfully"}


@router.delete("/{band_id}", response_model=Envelope[None], dependencies=[Depends(require_admin)])
def delete_band(band_id: int, db: Session = Depends(get_db)):
    get_service(db).delete_band(band_id)
    return {"success": True, "message": "Band deleted successfully"}
