# pulse/services/mailer.py
"""
Outgoing e-mail over SMTP.

The message bodies are small inline HTML templates; every send goes through
``smtp_retry`` so a flaky relay gets three attempts before the task fails.
With no ``EMAIL_HOST`` configured the message is only logged.
"""
import smtplib
from email.message import EmailMessage
from html import escape
from typing import Optional

from pulse.utils.logging import get_logger
from pulse.utils.retry import smtp_retry
from pulse.utils.settings import (
    EMAIL_HOST,
    EMAIL_PASSWORD,
    EMAIL_PORT,
    EMAIL_USE_TLS,
    EMAIL_USER,
    NO_REPLY_EMAIL,
    WEBSITE_URL,
)

logger = get_logger(__name__)

_LAYOUT = """<!DOCTYPE html>
<html>
  <body style="font-family: -apple-system, Helvetica, Arial, sans-serif; color: #1d1d1f;">
    <div style="max-width: 600px; margin: 0 auto; padding: 24px;">
      <h1 style="font-size: 24px;">Pulse</h1>
      {body}
      <hr style="border: none; border-top: 1px solid #e5e5e5; margin-top: 32px;">
      <p style="font-size: 12px; color: #86868b;">
        <a href="{website}">{website}</a>
      </p>
    </div>
  </body>
</html>"""


def render(body: str) -> str:
    return _LAYOUT.format(body=body, website=escape(WEBSITE_URL))


def contact_notification(name: str, email: str, subject: str, message: str, order_number: Optional[str]) -> str:
    order_line = f"<p><strong>Order:</strong> {escape(order_number)}</p>" if order_number else ""
    return render(
        f"<h2>New contact form submission</h2>"
        f"<p><strong>From:</strong> {escape(name)} &lt;{escape(email)}&gt;</p>"
        f"<p><strong>Subject:</strong> {escape(subject)}</p>"
        f"{order_line}"
        f"<p>{escape(message)}</p>"
    )


def contact_auto_reply(name: str) -> str:
    return render(
        f"<h2>Thanks for reaching out, {escape(name)}!</h2>"
        "<p>We received your message and will get back to you within 24 hours.</p>"
    )


def newsletter_welcome() -> str:
    return render(
        "<h2>Welcome to the Pulse newsletter</h2>"
        "<p>You will be the first to hear about new bands, limited editions and offers.</p>"
    )


def password_reset(name: str, reset_link: str) -> str:
    return render(
        f"<h2>Hi {escape(name)},</h2>"
        "<p>We received a request to reset your password. The link below is valid for one hour.</p>"
        f'<p><a href="{escape(reset_link)}">Reset your password</a></p>'
        "<p>If you did not ask for this, you can ignore this e-mail.</p>"
    )


def order_confirmation(order_number: str, total: str, items: list) -> str:
    rows = "".join(
        f"<tr><td>{escape(i['name'])}</td><td>{i['quantity']}</td><td>${escape(i['unit_price'])}</td></tr>"
        for i in items
    )
    return render(
        f"<h2>Order {escape(order_number)} confirmed</h2>"
        f"<table><tr><th>Band</th><th>Qty</th><th>Price</th></tr>{rows}</table>"
        f"<p><strong>Total:</strong> ${escape(total)}</p>"
    )


@smtp_retry()
def _deliver(message: EmailMessage):
    with smtplib.SMTP(EMAIL_HOST, EMAIL_PORT, timeout=10) as smtp:
        if EMAIL_USE_TLS:
            smtp.starttls()
        if EMAIL_USER:
            smtp.login(EMAIL_USER, EMAIL_PASSWORD)
        smtp.send_message(message)


def send_email(to: str, subject: str, html: str, reply_to: Optional[str] = None) -> bool:
    """Returns False when delivery is disabled, raises after the last failed retry."""
    if not EMAIL_HOST:
        logger.info(f"E-mail delivery disabled, skipping '{subject}' to {to}")
        return False

    message = EmailMessage()
    message["From"] = NO_REPLY_EMAIL
    message["To"] = to
    message["Subject"] = subject
    if reply_to:
        message["Reply-To"] = reply_to
    message.set_content("This message requires an HTML capable mail client.")
    message.add_alternative(html, subtype="html")

    _deliver(message)
    logger.info(f"E-mail '{subject}' sent to {to}")
    return True
