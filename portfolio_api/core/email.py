from __future__ import annotations

import asyncio
import logging
import smtplib
import ssl
from email.message import EmailMessage
from email.utils import formataddr, formatdate, make_msgid
from typing import Optional

from fastapi import Request

from portfolio_api.core.config import Settings
from portfolio_api.core.errors import DispatchAuthError, DispatchConnectionError
from portfolio_api.schemas.contact import OutboundMessage

logger = logging.getLogger(__name__)

_CONNECTION_ERRORS = (smtplib.SMTPConnectError, smtplib.SMTPServerDisconnected)


class MailDispatcher:
    """SMTP relay client used by the contact pipeline.

    Holds connection settings only. Every send opens its own connection, so
    concurrent requests never share a transport.
    """

    def __init__(
        self,
        host: Optional[str],
        port: int = 587,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_ssl: bool = False,
        timeout: float = 10.0,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_ssl = use_ssl
        self.timeout = timeout

    @classmethod
    def from_settings(cls, config: Settings) -> "MailDispatcher":
        return cls(
            host=config.SMTP_HOST,
            port=config.SMTP_PORT,
            username=config.SMTP_USER,
            password=config.SMTP_PASSWORD.get_secret_value() if config.SMTP_PASSWORD else None,
            use_ssl=config.SMTP_SECURE,
            timeout=config.SMTP_TIMEOUT_SECONDS,
        )

    @property
    def configured(self) -> bool:
        return bool(self.host and self.username and self.password)

    @property
    def sender_address(self) -> str:
        return self.username or ""

    def build_message(self, outbound: OutboundMessage) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = formataddr((outbound.from_name, self.sender_address))
        msg["To"] = outbound.to
        if outbound.reply_to:
            msg["Reply-To"] = outbound.reply_to
        msg["Subject"] = outbound.subject
        msg["Date"] = formatdate(localtime=True)
        msg["Message-ID"] = make_msgid(domain=self._msgid_domain())
        msg.set_content(outbound.text)
        msg.add_alternative(outbound.html, subtype="html")
        return msg

    def _msgid_domain(self) -> Optional[str]:
        if self.username and "@" in self.username:
            return self.username.rsplit("@", 1)[1]
        return self.host

    def _connect(self) -> smtplib.SMTP:
        if self.use_ssl:
            return smtplib.SMTP_SSL(
                self.host,
                self.port,
                timeout=self.timeout,
                context=ssl.create_default_context(),
            )
        server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        try:
            server.starttls(context=ssl.create_default_context())
        except Exception:
            server.close()
            raise
        return server

    def _send_sync(self, message: EmailMessage) -> None:
        with self._connect() as server:
            server.login(self.username, self.password)
            server.send_message(message)

    def _verify_sync(self) -> None:
        with self._connect() as server:
            server.login(self.username, self.password)
            server.noop()

    async def send(self, outbound: OutboundMessage) -> str:
        """Send one message and return its Message-ID.

        Raises DispatchAuthError or DispatchConnectionError for transport
        failures; anything else propagates unchanged. No retries.
        """
        if not self.configured:
            raise RuntimeError("SMTP relay is not configured")

        message = self.build_message(outbound)
        try:
            await asyncio.to_thread(self._send_sync, message)
        except smtplib.SMTPAuthenticationError as exc:
            raise DispatchAuthError() from exc
        except _CONNECTION_ERRORS as exc:
            raise DispatchConnectionError() from exc
        except smtplib.SMTPException:
            raise
        except OSError as exc:
            # Socket timeouts, refused connections, DNS failures
            raise DispatchConnectionError() from exc
        return message["Message-ID"]

    async def verify(self) -> bool:
        """Open and authenticate a connection; log the outcome."""
        if not self.configured:
            return False
        try:
            await asyncio.to_thread(self._verify_sync)
        except Exception as exc:
            logger.error("Email transporter verification failed: %s", exc)
            return False
        logger.info("Email transporter ready")
        return True


def get_mail_dispatcher(request: Request) -> MailDispatcher:
    """FastAPI dependency returning the dispatcher built at application startup."""
    return request.app.state.mail_dispatcher
