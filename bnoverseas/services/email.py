import enum
import logging
import smtplib
from email.message import EmailMessage

from bnoverseas.core import config

logger = logging.getLogger(__name__)


class EmailType(str, enum.Enum):
    EMAIL_VERIFICATION = "email_verification"
    VERIFICATION_LINK = "verification_link"
    PASSWORD_RESET = "password_reset"


class EmailDeliveryError(Exception):
    pass


TEMPLATES = {
    EmailType.EMAIL_VERIFICATION: (
        "Your BN Overseas verification code",
        "Hi {first_name},\n\n"
        "Your verification code is {otp}. It expires in {expires_minutes} minutes.\n\n"
        "You can also finish verification here: {verification_url}\n\n"
        "-- Team BN Overseas\n",
    ),
    EmailType.VERIFICATION_LINK: (
        "Verify your BN Overseas account",
        "Hi {first_name},\n\n"
        "Please verify your email address by opening the link below:\n\n"
        "{verification_url}\n\n"
        "If you did not register, simply ignore this message.\n\n"
        "-- Team BN Overseas\n",
    ),
    EmailType.PASSWORD_RESET: (
        "Reset your BN Overseas password",
        "Hi {first_name},\n\n"
        "You requested to reset your password. The link below is valid for "
        "{expires_minutes} minutes:\n\n"
        "{reset_url}\n\n"
        "If you didn't request this, just ignore it.\n\n"
        "-- Team BN Overseas\n",
    ),
}


def render_email(email_type: EmailType, **data) -> tuple[str, str]:
    subject, body = TEMPLATES[email_type]
    data.setdefault("first_name", "there")
    return subject, body.format(**data)


def send_email(to_email: str, subject: str, body: str) -> None:
    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = config.SMTP_FROM or config.SMTP_USERNAME
    msg["To"] = to_email
    msg.set_content(body)

    try:
        if config.SMTP_PORT == 465:
            with smtplib.SMTP_SSL(config.SMTP_HOST, config.SMTP_PORT) as smtp:
                smtp.login(config.SMTP_USERNAME, config.SMTP_PASSWORD)
                smtp.send_message(msg)
        else:
            with smtplib.SMTP(config.SMTP_HOST, config.SMTP_PORT) as smtp:
                smtp.starttls()
                smtp.login(config.SMTP_USERNAME, config.SMTP_PASSWORD)
                smtp.send_message(msg)
    except (smtplib.SMTPException, OSError) as exc:
        raise EmailDeliveryError(f"Could not deliver mail to {to_email}") from exc


def send_templated_email(to_email: str, email_type: EmailType, **data) -> None:
    subject, body = render_email(email_type, **data)
    send_email(to_email, subject, body)
    logger.info("Sent %s email to %s", email_type.value, to_email)
