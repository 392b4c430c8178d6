"""Mailer adapters: SMTP delivery and a log-only backend for development."""

from __future__ import annotations

import logging
import smtplib
import ssl
from email.message import EmailMessage

from accounts.services._shared.ports.mailer import Mailer, OutgoingMail

log = logging.getLogger(__name__)


def redact_address(address: str) -> str:
    """Keep the first two characters of the local part, e.g. ``al***@example.com``."""
    if "@" not in address:
        return "redacted"
    local, domain = address.split("@", 1)
    return f"{local[:2]}***@{domain}"


class LoggingMailer(Mailer):
    """Write messages to the log instead of sending them."""

    def send(self, mail: OutgoingMail) -> None:
        log.info(
            "mail.logged",
            extra={"event": "mail.logged", "reason": mail.subject},
        )
        log.debug("mail.body to=%s body=%s", redact_address(mail.to), mail.body)


class SMTPMailer(Mailer):
    """
    Deliver plain-text mail over SMTP.

    Port 465 uses implicit TLS; any other port upgrades with ``STARTTLS``.

    :param host: SMTP server host.
    :param port: SMTP server port.
    :param sender: ``From`` address.
    :param user: Login user, or ``None`` for unauthenticated relays.
    :param password: Login password.
    :param timeout: Socket timeout in seconds.
    """

    def __init__(
        self,
        *,
        host: str,
        port: int,
        sender: str,
        user: str | None = None,
        password: str | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.host = host
        self.port = port
        self.sender = sender
        self.user = user
        self.password = password
        self.timeout = timeout

    def _build(self, mail: OutgoingMail) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = mail.subject
        msg["From"] = self.sender
        msg["To"] = mail.to
        msg.set_content(mail.body)
        return msg

    def send(self, mail: OutgoingMail) -> None:
        """
        Send ``mail``.

        :raises smtplib.SMTPException: On delivery failure.
        :raises OSError: On connection failure.
        """
        context = ssl.create_default_context()
        msg = self._build(mail)
        if self.port == 465:
            with smtplib.SMTP_SSL(
                self.host, self.port, context=context, timeout=self.timeout
            ) as server:
                self._deliver(server, msg)
        else:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                server.ehlo()
                server.starttls(context=context)
                self._deliver(server, msg)
        log.info("mail.sent to=%s", redact_address(mail.to), extra={"event": "mail.sent"})

    def _deliver(self, server: smtplib.SMTP, msg: EmailMessage) -> None:
        if self.user and self.password:
            server.login(self.user, self.password)
        server.send_message(msg)
