# utils/email.py
import logging
import smtplib
import ssl
from email.mime.text import MIMEText

from config import settings

logger = logging.getLogger(__name__)


def _redact(email: str) -> str:
    if "@" not in email:
        return "redacted"
    local, domain = email.split("@", 1)
    return f"{local[:2]}***@{domain}"


def send_email(to: str, subject: str, text: str) -> bool:
    """Send a plain-text mail over SMTP. Returns False instead of raising on delivery errors."""
    if not settings.SMTP_HOST:
        # Dev mode: no SMTP configured, log instead of sending
        logger.info(
            "Mail to %s not sent (SMTP_HOST unset): %s | body_preview=%s",
            _redact(to), subject, text[:200],
        )
        return True

    msg = MIMEText(text, "plain", "utf-8")
    msg["Subject"] = subject
    msg["From"] = settings.MAIL_FROM
    msg["To"] = to

    try:
        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=30) as server:
            if settings.SMTP_USE_TLS:
                server.starttls(context=ssl.create_default_context())
            if settings.SMTP_USER and settings.SMTP_PASSWORD:
                server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
            server.sendmail(settings.MAIL_FROM, [to], msg.as_string())
    except (smtplib.SMTPException, OSError) as e:
        logger.error("Failed to send mail to %s: %s", _redact(to), e)
        return False

    logger.info("Mail sent to %s: %s", _redact(to), subject)
    return True
