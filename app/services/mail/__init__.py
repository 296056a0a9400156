import logging
import smtplib
from email.message import EmailMessage

from fastapi import Depends

from app.utils.config import Settings, get_settings
from app.utils.errors import EmailDeliveryError


logger = logging.getLogger(__name__)


class MailSender:
    """Sends plain-text mail through an SMTP relay."""

    def __init__(
        self,
        host: str,
        port: int,
        from_email: str,
        from_name: str,
        user: str | None = None,
        password: str | None = None,
        use_tls: bool = True,
        timeout: float = 10.0,
    ) -> None:
        self.host = host
        self.port = port
        self.from_email = from_email
        self.from_name = from_name
        self.user = user
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "MailSender":
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            from_email=settings.from_email,
            from_name=settings.from_name,
            user=settings.smtp_user,
            password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
        )

    def build_message(self, email: str, subject: str, message: str) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = f"{self.from_name} <{self.from_email}>"
        msg["To"] = email
        msg["Subject"] = subject
        msg.set_content(message)
        return msg

    def send(self, email: str, subject: str, message: str) -> None:
        """Deliver one message, raising EmailDeliveryError on any SMTP or network failure."""
        msg = self.build_message(email, subject, message)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                if self.use_tls:
                    smtp.starttls()
                if self.user and self.password:
                    smtp.login(self.user, self.password)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            raise EmailDeliveryError() from exc
        logger.info("Sent '%s' mail to %s", subject, email)


def get_mail_sender(settings: Settings = Depends(get_settings)) -> MailSender:
    return MailSender.from_settings(settings)
