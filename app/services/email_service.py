"""
Email Service

Delivers password reset codes by email.
"""

import asyncio
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from app.core.config import settings


logger = logging.getLogger(__name__)


def get_password_reset_email_html(otp_code: str) -> str:
    """Generate HTML content for password reset email."""
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <meta charset="utf-8">
        <style>
            body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; margin: 0; padding: 0; background-color: #faf7f2; }}
            .container {{ max-width: 600px; margin: 40px auto; background: white; border-radius: 12px; overflow: hidden; }}
            .header {{ background: #1f1b16; padding: 32px; text-align: center; }}
            .header h1 {{ color: #f5c26b; margin: 0; font-size: 26px; }}
            .content {{ padding: 32px; }}
            .otp-code {{ font-size: 36px; font-weight: bold; letter-spacing: 8px; color: #1f1b16; font-family: monospace; text-align: center; margin: 24px 0; }}
            p {{ color: #374151; line-height: 1.6; }}
        </style>
    </head>
    <body>
        <div class="container">
            <div class="header"><h1>{settings.EMAIL_FROM_NAME}</h1></div>
            <div class="content">
                <p>We received a request to reset your password. Enter this code in the app:</p>
                <div class="otp-code">{otp_code}</div>
                <p>The code expires in <strong>{settings.OTP_EXPIRE_MINUTES} minutes</strong>.</p>
                <p>If you didn't ask for a reset, you can ignore this email.</p>
            </div>
        </div>
    </body>
    </html>
    """


def get_password_reset_email_text(otp_code: str) -> str:
    """Generate plain text content for password reset email."""
    return f"""
We received a request to reset your {settings.EMAIL_FROM_NAME} password.

Your reset code: {otp_code}

The code expires in {settings.OTP_EXPIRE_MINUTES} minutes.

If you didn't ask for a reset, you can ignore this email.
    """


def _send_via_smtp(to_email: str, msg: MIMEMultipart) -> None:
    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as server:
        server.starttls()
        server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
        server.sendmail(settings.EMAIL_FROM_ADDRESS, to_email, msg.as_string())


async def send_password_reset_email(to_email: str, otp_code: str) -> bool:
    """
    Send a password reset code.

    In development without SMTP credentials the code is only logged.

    Returns:
        bool: True if the email was handed off, False otherwise.
    """
    if settings.is_development and not settings.SMTP_USER:
        logger.info("[DEV MODE] Password reset code for %s: %s", to_email, otp_code)
        return True

    msg = MIMEMultipart("alternative")
    msg["Subject"] = f"Your {settings.EMAIL_FROM_NAME} reset code"
    msg["From"] = f"{settings.EMAIL_FROM_NAME} <{settings.EMAIL_FROM_ADDRESS}>"
    msg["To"] = to_email
    msg.attach(MIMEText(get_password_reset_email_text(otp_code), "plain"))
    msg.attach(MIMEText(get_password_reset_email_html(otp_code), "html"))

    try:
        # smtplib blocks; keep it off the event loop
        await asyncio.to_thread(_send_via_smtp, to_email, msg)
    except (smtplib.SMTPException, OSError) as e:
        logger.error("Failed to send password reset email to %s: %s", to_email, e)
        return False

    logger.info("Password reset email sent to %s", to_email)
    return True
