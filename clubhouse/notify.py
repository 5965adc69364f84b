from __future__ import annotations

import logging
import os
import smtplib
from email.message import EmailMessage
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined

BASE_DIR = Path(__file__).resolve().parent

SMTP_HOST = os.getenv("SMTP_HOST")
SMTP_PORT_RAW = os.getenv("SMTP_PORT")
SMTP_PORT = int(SMTP_PORT_RAW) if SMTP_PORT_RAW and SMTP_PORT_RAW.isdigit() else None
SMTP_USERNAME = os.getenv("SMTP_USERNAME")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
SMTP_USE_TLS = os.getenv("SMTP_USE_TLS", "true").lower() in {"1", "true", "yes"}
SMTP_USE_SSL = os.getenv("SMTP_USE_SSL", "false").lower() in {"1", "true", "yes"}
SMTP_SENDER = os.getenv("SMTP_SENDER")
FAN_UPDATES_EMAIL = os.getenv("FAN_UPDATES_EMAIL")

logger = logging.getLogger(__name__)

templates = Environment(
    loader=FileSystemLoader(str(BASE_DIR / "templates")),
    undefined=StrictUndefined,
    keep_trailing_newline=False,
    autoescape=False,
)


def render_text(template_name: str, **context: object) -> str:
    """Render a plain-text template from the package ``templates`` directory."""
    return templates.get_template(template_name).render(**context).strip()


def send_email(to: str, subject: str, body: str) -> bool:
    """Send a plain-text email; returns False when it was only logged."""
    if not to:
        logger.info("No recipient for email '%s'; skipping", subject)
        return False

    sender = SMTP_SENDER or SMTP_USERNAME
    message = EmailMessage()
    message["Subject"] = subject
    message["From"] = sender or to
    message["To"] = to
    message.set_content(body)

    if not SMTP_HOST:
        logger.info("SMTP host not configured. Logging email to %s instead: %s", to, subject)
        logger.debug("Email body: %s", body)
        return False

    try:
        if SMTP_USE_SSL:
            with smtplib.SMTP_SSL(SMTP_HOST, SMTP_PORT or 465) as server:
                if SMTP_USERNAME and SMTP_PASSWORD:
                    server.login(SMTP_USERNAME, SMTP_PASSWORD)
                server.send_message(message)
        else:
            with smtplib.SMTP(SMTP_HOST, SMTP_PORT or 587) as server:
                if SMTP_USE_TLS:
                    server.starttls()
                if SMTP_USERNAME and SMTP_PASSWORD:
                    server.login(SMTP_USERNAME, SMTP_PASSWORD)
                server.send_message(message)
    except (smtplib.SMTPException, OSError) as exc:
        logger.warning("Failed to send email '%s' to %s: %s", subject, to, exc)
        return False
    return True
