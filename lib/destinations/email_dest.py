import os
import smtplib
from email.message import EmailMessage

from ..errors import DestinationConfigError, DispatchFailure
from ..formatter import AlertPayload
from .base import Destination


class EmailDestination(Destination):
    def __init__(self):
        self.smtp_host = os.getenv("SMTP_HOST", "localhost")
        self.smtp_port = int(os.getenv("SMTP_PORT", "25"))
        self.smtp_user = os.getenv("SMTP_USER")
        self.smtp_pass = os.getenv("SMTP_PASS")
        self.from_addr = os.getenv("SMTP_EMAIL_FROM")
        self.to_addr = os.getenv("SMTP_EMAIL_TO")

        if not (self.from_addr and self.to_addr):
            raise DestinationConfigError("Email selected but SMTP_EMAIL_FROM or SMTP_EMAIL_TO is missing.")

    def send(self, payload: AlertPayload) -> None:
        msg = EmailMessage()
        msg["Subject"] = f"[AWS] {payload.subject}"
        msg["From"] = self.from_addr
        msg["To"] = self.to_addr
        msg.set_content(payload.body)

        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=10) as s:
                if self.smtp_user and self.smtp_pass:
                    s.starttls()
                    s.login(self.smtp_user, self.smtp_pass)
                s.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise DispatchFailure(f"EmailDestination: {e}") from e
