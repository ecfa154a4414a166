import os
import smtplib
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from jinja2 import Environment, FileSystemLoader, select_autoescape
from loguru import logger

from app.core.config import settings

TEMPLATE_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "templates", "email")

_env = Environment(loader=FileSystemLoader(TEMPLATE_DIR), autoescape=select_autoescape(["html"]))


# Helper to get template
def get_template(template_name):
    return _env.get_template(template_name)


# Helper to send email via SMTP
def send_email_via_smtp(to_email, subject, html_content) -> bool:
    # Only HOST is required; user/pass are optional (Mailpit)
    if not settings.SMTP_HOST:
        logger.warning("SMTP Host not configured. Skipping email.")
        return False

    try:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{settings.EMAILS_FROM_NAME} <{settings.EMAILS_FROM_EMAIL}>"
        msg["To"] = to_email
        msg.attach(MIMEText(html_content, "html"))

        logger.info(f"Connecting to SMTP: {settings.SMTP_HOST}:{settings.SMTP_PORT}")

        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as server:
            server.ehlo()

            # TLS only on submission ports; Mailpit (1025) runs plain
            if settings.SMTP_PORT in [587, 2525]:
                server.starttls()
                server.ehlo()

            if settings.SMTP_USER and settings.SMTP_PASSWORD:
                server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)

            server.sendmail(settings.EMAILS_FROM_EMAIL, to_email, msg.as_string())

        logger.success(f"Email sent successfully to {to_email}")
        return True
    except Exception as e:
        logger.error(f"Failed to send email: {str(e)}")
        return False


# ---------------------------------------------------------
# RESET / 2FA CODE
# ---------------------------------------------------------
def send_reset_code_email(email: str, code: str, ttl_minutes: int) -> bool:
    try:
        template = get_template("reset_code.html")
        html_content = template.render(
            code=code,
            ttl_minutes=ttl_minutes,
            requested_at=datetime.now().strftime("%d-%m-%Y %I:%M %p"),
            login_url=f"{settings.FRONTEND_URL}/login",
        )
    except Exception as e:
        logger.error(f"Error preparing reset code email: {e}")
        return False

    return send_email_via_smtp(email, "Your 2FA Code", html_content)
