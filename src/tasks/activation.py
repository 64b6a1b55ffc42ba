"""Celery task delivering activation notices to pending users."""

import logging
import smtplib
from email.message import EmailMessage
from urllib.parse import urlencode

from sqlalchemy.orm import Session

from src.celery_app import app as celery_app
from src.config import get_settings
from src.database import SessionLocal
from src.models.user import User

logger = logging.getLogger(__name__)


def build_activation_message(user: User) -> EmailMessage:
    """Compose the activation email for a pending user."""
    settings = get_settings()
    query = urlencode({"email": user.email, "code": user.activation_code})
    link = f"{settings.activation_url}?{query}"
    msg = EmailMessage()
    msg["Subject"] = "Activate your account"
    msg["From"] = settings.mail_from
    msg["To"] = user.email
    msg.set_content(
        "An account has been created for you.\n\n"
        f"Follow this link to activate it:\n{link}\n"
    )
    return msg


@celery_app.task(bind=True, max_retries=3)
def send_activation_email(self, user_id: int) -> dict:
    """Send the activation notice for a pending user.

    Returns:
        dict with "sent" and, when nothing was sent, a "reason"
    """
    settings = get_settings()
    db: Session = SessionLocal()
    try:
        user = db.get(User, user_id)
        if user is None:
            logger.warning(f"User {user_id} not found, skipping activation notice")
            return {"sent": False, "reason": "not_found"}
        if user.activated or not user.activation_code:
            return {"sent": False, "reason": "already_active"}

        msg = build_activation_message(user)
        if not settings.smtp_host:
            logger.warning(f"Mail not configured, activation notice for user {user_id} not sent")
            return {"sent": False, "reason": "mail_not_configured"}

        try:
            with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=10) as smtp:
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send activation notice to user {user_id}: {e}")
            raise self.retry(exc=e, countdown=60) from e

        logger.info(f"Activation notice sent to user {user_id}")
        return {"sent": True}
    finally:
        db.close()
