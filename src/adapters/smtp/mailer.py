"""
SMTP notifier adapter - Implements Notifier protocol.

Sends the verification code as a plain-text + HTML email through an SMTP
relay. Transport failures are reported as NotificationError so the domain
can answer NOTIFICATION_FAILED while keeping the stored code.
"""

import logging
import smtplib
from email.message import EmailMessage

from src.domain.exceptions import NotificationError

logger = logging.getLogger(__name__)


class SmtpNotifier:
    """
    Implements Notifier protocol via smtplib.

    Opens one SMTP session per message; there is no implicit retry.
    """

    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        username: str = "",
        password: str = "",
        use_tls: bool = True,
        timeout: float = 10.0,
        app_name: str = "POP N' PLAN",
        code_ttl_minutes: int = 10,
    ) -> None:
        self._host = host
        self._port = port
        self._sender = sender
        self._username = username
        self._password = password
        self._use_tls = use_tls
        self._timeout = timeout
        self._app_name = app_name
        self._code_ttl_minutes = code_ttl_minutes

    def send_verification_code(self, email: str, code: str) -> None:
        message = self.build_message(email, code)
        try:
            with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as server:
                if self._use_tls:
                    server.starttls()
                if self._username:
                    server.login(self._username, self._password)
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(f"SMTP delivery to {email} failed") from e
        logger.info("Verification email sent to %s", email)

    def build_message(self, email: str, code: str) -> EmailMessage:
        expiry = f"It expires in {self._code_ttl_minutes} minutes."
        message = EmailMessage()
        message["Subject"] = f"{self._app_name} - Your verification code"
        message["From"] = f'"{self._app_name}" <{self._sender}>'
        message["To"] = email
        message.set_content(f"Your {self._app_name} verification code is {code}. {expiry}")
        message.add_alternative(
            f"<p>Your {self._app_name} verification code is <b>{code}</b>.</p><p>{expiry}</p>",
            subtype="html",
        )
        return message
