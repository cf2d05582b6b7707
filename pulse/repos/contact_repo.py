# pulse/repos/contact_repo.py
from typing import Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from pulse.data.models.contact import ContactSubmissionModel, NewsletterSubscriberModel


class ContactRepo:
    def __init__(self, db: Session):
        self.db = db

    #contact submissions
    def add_submission(self, submission: ContactSubmissionModel) -> ContactSubmissionModel:
        self.db.add(submission)
        self.db.flush()
        return submission

    def get_submission(self, submission_id: int) -> ContactSubmissionModel | None:
        return self.db.get(ContactSubmissionModel, submission_id)

    def _submissions(self, unread_only: bool):
        stmt = select(ContactSubmissionModel)
        if unread_only:
            stmt = stmt.where(ContactSubmissionModel.read_status.is_(False))
        return stmt

    def list_submissions(self, limit: int, offset: int, unread_only: bool) -> Sequence[ContactSubmissionModel]:
        stmt = (
            self._submissions(unread_only)
            .order_by(ContactSubmissionModel.created_at.desc(), ContactSubmissionModel.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return self.db.execute(stmt).scalars().all()

    def count_submissions(self, unread_only: bool) -> int:
        stmt = self._submissions(unread_only).with_only_columns(func.count(ContactSubmissionModel.id))
        return self.db.execute(stmt).scalar_one()

    #newsletter
    def get_subscriber(self, email: str) -> NewsletterSubscriberModel | None:
        return self.db.execute(
            select(NewsletterSubscriberModel).where(
                func.lower(NewsletterSubscriberModel.email) == email.lower()
            )
        ).scalar_one_or_none()

    def add_subscriber(self, subscriber: NewsletterSubscriberModel) -> NewsletterSubscriberModel:
        self.db.add(subscriber)
        self.db.flush()
        return subscriber

    def _subscribers(self, active_only: bool):
        stmt = select(NewsletterSubscriberModel)
        if active_only:
            stmt = stmt.where(NewsletterSubscriberModel.active.is_(True))
        return stmt

    def list_subscribers(self, limit: int, offset: int, active_only: bool) -> Sequence[NewsletterSubscriberModel]:
        stmt = (
            self._subscribers(active_only)
            .order_by(NewsletterSubscriberModel.subscribed_at.desc(), NewsletterSubscriberModel.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return self.db.execute(stmt).scalars().all()

    def count_subscribers(self, active_only: bool) -> int:
        stmt = self._subscribers(active_only).with_only_columns(func.count(NewsletterSubscriberModel.id))
        return self.db.execute(stmt).scalar_one()
