# pulse/api/routers/admin.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from pulse.api.deps import get_db, require_admin
from pulse.domain.schemas import AdminStatsOut, Envelope
from pulse.services.admin_service import AdminService

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/stats", response_model=Envelope[AdminStatsOut])
def admin_stats(db: Session = Depends(get_db)):
    return {"success": True, "data": AdminService(db).overview()}
