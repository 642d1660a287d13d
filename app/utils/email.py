import logging
import smtplib
import ssl
from email.mime.application import MIMEApplication
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from fastapi.concurrency import run_in_threadpool

from app.core.config import settings

logger = logging.getLogger(__name__)

class EmailDeliveryError(Exception):
    """Raised when the SMTP server does not accept a message."""

def _open_smtp_connection() -> smtplib.SMTP:
    host = settings.EMAIL_HOST
    port = settings.EMAIL_PORT
    context = ssl.create_default_context()

    if port == 465:
        server = smtplib.SMTP_SSL(host, port, context=context, timeout=settings.EMAIL_TIMEOUT)
    else:
        server = smtplib.SMTP(host, port, timeout=settings.EMAIL_TIMEOUT)
        server.starttls(context=context)

    if settings.EMAIL_USERNAME:
        server.login(settings.EMAIL_USERNAME, settings.EMAIL_PASSWORD)
    return server

def build_message(
    to: str,
    subject: str,
    html: str,
    attachment: Optional[bytes] = None,
    filename: Optional[str] = None,
    mime_type: str = "application/pdf"
) -> MIMEMultipart:
    msg = MIMEMultipart("mixed")
    msg["Subject"] = subject
    msg["From"] = settings.EMAIL_FROM
    msg["To"] = to
    msg.attach(MIMEText(html, "html"))

    if attachment is not None:
        _, subtype = mime_type.split("/", 1)
        part = MIMEApplication(attachment, _subtype=subtype)
        part.add_header("Content-Disposition", "attachment", filename=filename or "attachment")
        msg.attach(part)

    return msg

def _deliver(msg: MIMEMultipart, to: str) -> None:
    server = _open_smtp_connection()
    try:
        server.sendmail(settings.EMAIL_FROM, [to], msg.as_string())
    finally:
        server.quit()

async def send_email_with_attachment(
    to: str,
    subject: str,
    html: str,
    attachment: bytes,
    filename: str,
    mime_type: str = "application/pdf"
) -> None:
    """Send an HTML email with a single file attached."""
    msg = build_message(to, subject, html, attachment, filename, mime_type)
    try:
        await run_in_threadpool(_deliver, msg, to)
        logger.info(f"Email with attachment {filename} sent to {to}")
    except Exception as e:
        logger.error(f"Failed to send email with attachment to {to}: {e}")
        raise EmailDeliveryError("Could not send the email with attachment") from e

def _check_transport() -> None:
    server = _open_smtp_connection()
    server.noop()
    server.quit()

async def verify_email_transport() -> bool:
    """
    Check the SMTP connection at startup. Failures are only logged so the API keeps running.
    """
    try:
        await run_in_threadpool(_check_transport)
        logger.info("SMTP transport verified")
        return True
    except Exception as e:
        logger.warning(f"Could not verify SMTP transport, the API will keep running: {e}")
        return False
