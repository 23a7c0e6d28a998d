"""
mail/channel.py -- Outbound mail channel used by the invitation service.

The contract is a single call: send(to, subject, body) -> bool. True means
the message was handed to the transport; False means it was not, and the
caller decides what that means (the invitation service reports "created but
not notified"). send() never raises for delivery problems and never retries.

Implementations:
  SmtpMailChannel -- aiosmtplib, one connection per message.
  LogMailChannel  -- used when SMTP_HOST is empty. Logs the message and
                     returns False, since nothing was delivered.

Usage:
    channel = build_mail_channel(get_settings())
    ok = await channel.send("bob@x.com", "Welcome", "...")
"""

from __future__ import annotations

import logging
from email.message import EmailMessage
from typing import Protocol

import aiosmtplib

from core.config import Settings

logger = logging.getLogger("roster.mail")


class MailChannel(Protocol):
    async def send(self, to: str, subject: str, body: str) -> bool: ...


class SmtpMailChannel:
    """Send plain-text mail through an SMTP relay."""

    def __init__(
        self,
        hostname: str,
        port: int,
        sender: str,
        username: str = "",
        password: str = "",
        use_tls: bool = False,
    ) -> None:
        self.hostname = hostname
        self.port = port
        self.sender = sender
        self.username = username
        self.password = password
        self.use_tls = use_tls

    async def send(self, to: str, subject: str, body: str) -> bool:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)
        try:
            await aiosmtplib.send(
                message,
                hostname=self.hostname,
                port=self.port,
                username=self.username or None,
                password=self.password or None,
                use_tls=self.use_tls,
            )
        except (aiosmtplib.SMTPException, OSError) as exc:
            logger.error("Failed to send mail to %s: %s", to, exc)
            return False
        logger.info("Sent mail %r to %s", subject, to)
        return True


class LogMailChannel:
    """Stand-in when no SMTP relay is configured. Nothing is delivered."""

    async def send(self, to: str, subject: str, body: str) -> bool:
        logger.warning("Mail not configured - would send %r to %s", subject, to)
        logger.debug("Mail body:\n%s", body)
        return False


def build_mail_channel(settings: Settings) -> MailChannel:
    if not settings.smtp_host:
        return LogMailChannel()
    return SmtpMailChannel(
        hostname=settings.smtp_host,
        port=settings.smtp_port,
        sender=settings.sender_address,
        username=settings.smtp_username,
        password=settings.smtp_password,
        use_tls=settings.smtp_use_tls,
    )
