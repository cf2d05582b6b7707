# pulse/services/notification_service.py
from typing import List, Optional

from pulse.celery_worker import celery_app
from pulse.services import mailer
from pulse.utils.logging import get_logger
from pulse.utils.settings import FRONTEND_URL, SUPPORT_EMAIL

logger = get_logger(__name__)


class NotificationService:
    """
    Queues outbound e-mail on Celery.
    Callers never wait for SMTP. A broker outage is logged, not raised.
    """

    @staticmethod
    def _enqueue(task, *args):
        try:
            task.delay(*args)
        except Exception as e:  # kombu raises OperationalError and friends
            logger.error(f"Could not queue {task.name}: {e}")

    @staticmethod
    def send_contact_notification(name: str, email: str, subject: str, message: str, order_number: Optional[str]):
        NotificationService._enqueue(send_contact_notification_task, name, email, subject, message, order_number)

    @staticmethod
    def send_contact_auto_reply(name: str, email: str):
        NotificationService._enqueue(send_contact_auto_reply_task, name, email)

    @staticmethod
    def send_newsletter_welcome(email: str):
        NotificationService._enqueue(send_newsletter_welcome_task, email)

    @staticmethod
    def send_password_reset(email: str, name: str, token: str):
        NotificationService._enqueue(send_password_reset_task, email, name, token)

    @staticmethod
    def send_order_confirmation(email: str, order_number: str, total: str, items: List[dict]):
        NotificationService._enqueue(send_order_confirmation_task, email, order_number, total, items)


@celery_app.task(name="pulse.notifications.contact_notification")
def send_contact_notification_task(name, email, subject, message, order_number=None):
    sent = mailer.send_email(
        SUPPORT_EMAIL,
        f"Contact form: {subject}",
        mailer.contact_notification(name, email, subject, message, order_number),
        reply_to=email,
    )
    return {"to": SUPPORT_EMAIL, "sent": sent}


@celery_app.task(name="pulse.notifications.contact_auto_reply")
def send_contact_auto_reply_task(name, email):
    sent = mailer.send_email(email, "We received your message", mailer.contact_auto_reply(name))
    return {"to": email, "sent": sent}


@celery_app.task(name="pulse.notifications.newsletter_welcome")
def send_newsletter_welcome_task(email):
    sent = mailer.send_email(email, "Welcome to the Pulse newsletter", mailer.newsletter_welcome())
    return {"to": email, "sent": sent}


@celery_app.task(name="pulse.notifications.password_reset")
def send_password_reset_task(email, name, token):
    link = f"{FRONTEND_URL}/reset-password?token={token}"
    sent = mailer.send_email(email, "Reset your Pulse password", mailer.password_reset(name, link))
    return {"to": email, "sent": sent}


@celery_app.task(name="pulse.notifications.order_confirmation")
def send_order_confirmation_task(email, order_number, total, items):
    logger.info(f"[NOTIFICATION] Order {order_number} confirmation for {email}")
    sent = mailer.send_email(
        email,
        f"Your Pulse order {order_number}",
        mailer.order_confirmation(order_number, total, items),
    )
    return {"to": email, "order_number": order_number, "sent": sent}
