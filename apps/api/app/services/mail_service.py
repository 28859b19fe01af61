from __future__ import annotations

from dataclasses import dataclass, field
import logging
import smtplib
from email.message import EmailMessage

from email_validator import validate_email, EmailNotValidError

from ..core.config import Settings

logger = logging.getLogger(__name__)

SMTP_TIMEOUT_SECONDS = 10


@dataclass
class MailPayload:
    event_type: str
    subject: str
    body_html: str
    body_text: str
    recipients: list[str] = field(default_factory=list)
    ticket_id: int | None = None


def normalize_email(addr: str | None) -> str | None:
    if not addr:
        return None
    try:
        return validate_email(addr, check_deliverability=False).normalized
    except EmailNotValidError:
        return None


@dataclass
class SmtpMailer:
    """SMTP transport. Built once at startup and handed to the Notifier."""

    host: str
    port: int
    username: str = ""
    password: str = ""
    sender: str = ""
    starttls: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> "SmtpMailer":
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_user.strip(),
            password=settings.smtp_pass.strip(),
            sender=(settings.smtp_from or settings.smtp_user).strip(),
            starttls=settings.smtp_starttls,
        )

    @property
    def configured(self) -> bool:
        return bool(self.host and self.username and self.password)

    def build_message(self, payload: MailPayload) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = payload.subject
        msg["From"] = f"BugTracker <{self.sender}>"
        msg["To"] = ", ".join(payload.recipients)
        msg.set_content(payload.body_text)
        msg.add_alternative(payload.body_html, subtype="html")
        return msg

    def send(self, payload: MailPayload) -> None:
        msg = self.build_message(payload)
        with smtplib.SMTP(self.host, self.port, timeout=SMTP_TIMEOUT_SECONDS) as smtp:
            if self.starttls:
                smtp.starttls()
            smtp.login(self.username, self.password)
            smtp.send_message(msg)
