# pulse/services/contact_service.py
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from pulse.data.database import unit_of_work
from pulse.data.models.contact import ContactSubmissionModel, NewsletterSubscriberModel
from pulse.domain.errors import NotFoundError, ValidationError
from pulse.domain.schemas import Pagination, paginate
from pulse.repos.contact_repo import ContactRepo
from pulse.services.auth_service import is_valid_email
from pulse.services.notification_service import NotificationService
from pulse.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_SUBJECT = "No subject"
DEFAULT_UNSUBSCRIBE_REASON = "No reason provided"


class ContactService:
    """Contact form submissions and the newsletter list."""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ContactRepo(db)
        self.notification_service = NotificationService()

    #contact form
    def submit_contact(
        self,
        name: Optional[str],
        email: Optional[str],
        message: Optional[str],
        subject: Optional[str] = None,
        order_number: Optional[str] = None,
    ) -> ContactSubmissionModel:
        if not name or not email or not message:
            raise ValidationError("Name, email, and message are required")
        if not is_valid_email(email):
            raise ValidationError("Invalid email address")

        with unit_of_work(self.db):
            submission = self.repo.add_submission(
                ContactSubmissionModel(
                    name=name.strip(),
                    email=email.strip(),
                    subject=subject or DEFAULT_SUBJECT,
                    message=message,
                    order_number=order_number,
                )
            )

        logger.info(f"Contact submission {submission.id} stored")

        self.notification_service.send_contact_notification(
            submission.name, submission.email, submission.subject, submission.message, submission.order_number
        )
        self.notification_service.send_contact_auto_reply(submission.name, submission.email)
        return submission

    def list_submissions(
        self, limit: int = 50, offset: int = 0, unread_only: bool = False
    ) -> Tuple[List[ContactSubmissionModel], Pagination]:
        rows = self.repo.list_submissions(limit, offset, unread_only)
        total = self.repo.count_submissions(unread_only)
        return list(rows), paginate(total, limit, offset)

    def mark_read(self, submission_id: int) -> ContactSubmissionModel:
        with unit_of_work(self.db):
            submission = self.repo.get_submission(submission_id)
            if not submission:
                raise NotFoundError("Submission not found")
            submission.read_status = True
        return submission

    #newsletter
    def subscribe(self, email: Optional[str]) -> Dict[str, Any]:
        if not is_valid_email(email):
            raise ValidationError("Valid email address is required")
        email = email.strip().lower()

        with unit_of_work(self.db):
            subscriber = self.repo.get_subscriber(email)
            if subscriber and subscriber.active:
                return {"email": email, "already_subscribed": True}

            if subscriber:
                subscriber.active = True
                subscriber.subscribed_at = datetime.now(timezone.utc)
                subscriber.unsubscribed_at = None
                subscriber.unsubscribe_reason = None
                logger.info(f"Newsletter subscriber {subscriber.id} reactivated")
            else:
                subscriber = self.repo.add_subscriber(NewsletterSubscriberModel(email=email))
                logger.info(f"Newsletter subscriber {subscriber.id} added")

        self.notification_service.send_newsletter_welcome(email)
        return {"email": email, "already_subscribed": False}

    def list_subscribers(
        self, limit: int = 100, offset: int = 0, active_only: bool = True
    ) -> Tuple[List[NewsletterSubscriberModel], Pagination]:
        rows = self.repo.list_subscribers(limit, offset, active_only)
        total = self.repo.count_subscribers(active_only)
        return list(rows), paginate(total, limit, offset)

    def unsubscribe(self, email: str, reason: Optional[str] = None) -> None:
        with unit_of_work(self.db):
            subscriber = self.repo.get_subscriber(email.strip())
            if not subscriber:
                raise NotFoundError("Subscriber not found")

            subscriber.active = False
            subscriber.unsubscribed_at = datetime.now(timezone.utc)
            subscriber.unsubscribe_reason = reason or DEFAULT_UNSUBSCRIBE_REASON

        logger.info(f"Newsletter subscriber {subscriber.id} unsubscribed")
