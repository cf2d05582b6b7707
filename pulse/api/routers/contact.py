# pulse/api/routers/contact.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from pulse.api.deps import get_db, require_admin
from pulse.domain.schemas import (
    ContactIn,
    ContactOut,
    Envelope,
    NewsletterIn,
    PagedEnvelope,
    SubscribeOut,
    SubscriberOut,
)
from pulse.services.contact_service import ContactService

router = APIRouter(prefix="/api/contact", tags=["contact"])


def get_service(db: Session):
    return ContactService(db)


@router.post("", response_model=Envelope[ContactOut], status_code=201)
def submit_contact(payload: ContactIn, db: Session = Depends(get_db)):
    submission = get_service(db).submit_contact(
        payload.name,
        payload.email,
        payload.message,
        subject=payload.subject,
        order_number=payload.order_number,
    )
    return {"success": True, "data": submission, "message": "Message sent successfully"}


@router.get("", response_model=PagedEnvelope[List[ContactOut]], dependencies=[Depends(require_admin)])
def list_submissions(
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    unread: bool = Query(False),
    db: Session = Depends(get_db),
):
    rows, pagination = get_service(db).list_submissions(limit, offset, unread_only=unread)
    return {"success": True, "data": rows, "pagination": pagination}


@router.put("/{submission_id}/read", response_model=Envelope[ContactOut], dependencies=[Depends(require_admin)])
def mark_read(submission_id: int, db: Session = Depends(get_db)):
    submission = get_service(db).mark_read(submission_id)
    return {"success": True, "data": submission, "message": "Submission marked as read"}


@router.post("/newsletter", response_model=Envelope[SubscribeOut])
def subscribe(payload: NewsletterIn, db: Session = Depends(get_db)):
    result = get_service(db).subscribe(payload.email)
    if result["already_subscribed"]:
        message = "Already subscribed to newsletter"
    else:
        message = "Successfully subscribed to newsletter"
    return {"success": True, "data": result, "message": message}


@router.get(
    "/newsletter/subscribers",
    response_model=PagedEnvelope[List[SubscriberOut]],
    dependencies=[Depends(require_admin)],
)
def list_subscribers(
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    active: bool = Query(True),
    db: Session = Depends(get_db),
):
    rows, pagination = get_service(db).list_subscribers(limit, offset, active_only=active)
    return {"success": True, "data": rows, "pagination": pagination}


@router.delete("/newsletter/{email}", response_model=Envelope[None])
def unsubscribe(email: str, reason: Optional[str] = Query(None), db: Session = Depends(get_db)):
    get_service(db).unsubscribe(email, reason)
    return {"success": True, "message": "Successfully unsubscribed from newsletter"}
