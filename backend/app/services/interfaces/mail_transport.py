"""
Mail transport interface and its implementations.
"""

from abc import ABC, abstractmethod
from email.message import EmailMessage
from typing import Any

import aiosmtplib

from app.core.logging import get_logger

logger = get_logger(__name__)


class MailTransport(ABC):
    """
    Interface for delivering an outbound email.

    Implementations:
    - SmtpMailTransport: real delivery through an SMTP relay
    - ConsoleMailTransport: logs the message and keeps it in memory
    """

    @abstractmethod
    async def send(self, message: EmailMessage) -> dict[str, Any]:
        """
        Deliver a message.

        Returns:
            Delivery info reported by the transport
        Raises:
            Any transport error; callers decide how to report it
        """
        pass


class SmtpMailTransport(MailTransport):
    def __init__(
        self,
        hostname: str,
        port: int,
        username: str = "",
        password: str = "",
        start_tls: bool = True,
    ):
        self.hostname = hostname
        self.port = port
        self.username = username or None
        self.password = password or None
        self.start_tls = start_tls

    async def send(self, message: EmailMessage) -> dict[str, Any]:
        errors, response = await aiosmtplib.send(
            message,
            hostname=self.hostname,
            port=self.port,
            username=self.username,
            password=self.password,
            start_tls=self.start_tls,
        )
        return {"response": response, "rejected": list(errors)}


class ConsoleMailTransport(MailTransport):
    """Development transport: nothing leaves the process."""

    def __init__(self):
        self.sent: list[EmailMessage] = []

    async def send(self, message: EmailMessage) -> dict[str, Any]:
        self.sent.append(message)
        logger.info(
            "console_mail_sent",
            to=message["To"],
            subject=message["Subject"],
        )
        return {"response": "console", "rejected": []}
