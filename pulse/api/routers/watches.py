# pulse/api/routers/watches.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from pulse.api.deps import get_db, require_admin
from pulse.domain.errors import ValidationError
from pulse.domain.schemas import (
    CompatibilityOut,
    ComparisonOut,
    Envelope,
    ListEnvelope,
    WatchCreate,
    WatchOut,
    WatchUpdate,
)
from pulse.services.watch_service import WatchService

router = APIRouter(prefix="/api/watches", tags=["watches"])


def get_service(db: Session):
    return WatchService(db)


def _parse_ids(raw: str) -> List[int]:
    try:
        return [int(part) for part in raw.split(",") if part.strip()]
    except ValueError:
        raise ValidationError("Watch IDs must be comma separated integers")


@router.get("", response_model=ListEnvelope[List[WatchOut]])
def list_watches(db: Session = Depends(get_db)):
    watches = list(get_service(db).list_watches())
    return {"success": True, "data": watches, "count": len(watches)}


@router.get("/series/{series}", response_model=ListEnvelope[List[WatchOut]])
def watches_by_series(series: str, db: Session = Depends(get_db)):
    watches = list(get_service(db).watches_by_series(series))
    return {"success": True, "data": watches, "count": len(watches)}


@router.get("/compare/{ids}", response_model=Envelope[ComparisonOut])
def compare_watches(ids: str, db: Session = Depends(get_db)):
    return {"success": True, "data": get_service(db).compare(_parse_ids(ids))}


@router.get("/{watch_id}/compatibility", response_model=Envelope[CompatibilityOut])
def watch_compatibility(watch_id: int, db: Session = Depends(get_db)):
    return {"success": True, "data": get_service(db).compatibility(watch_id)}


@router.get("/{watch_id}", response_model=Envelope[WatchOut])
def get_watch(watch_id: int, db: Session = Depends(get_db)):
    return {"success": True, "data": get_service(db).get_watch(watch_id)}


#admin
@router.post("", response_model=Envelope[WatchOut], status_code=201, dependencies=[Depends(require_admin)])
def create_watch(payload: WatchCreate, db: Session = Depends(get_db)):
    watch = get_service(db).create_watch(payload)
    return {"success": True, "data": watch, "message": "Watch created successfully"}


@router.put("/{watch_id}", response_model=Envelope[WatchOut], dependencies=[Depends(require_admin)])
def update_watch(watch_id: int, payload: WatchUpdate, db: Session = Depends(get_db)):
    watch = get_service(db).update_watch(watch_id, payload)
    return {"success": True, "data": watch, "message": "Watch updated successfully"}
