"""
One-time passcodes for address verification.

Codes are 4-digit strings kept in a TTL store keyed by the raw email
address.  Issuing a new code overwrites any pending one.  Verification does
not remove the code; the registration flow discards it once the account
exists (see ``Settings.otp_consume_on_success``).
"""

from __future__ import annotations

import asyncio
import hmac
import logging
import secrets
import smtplib
import ssl
from email.message import EmailMessage
from typing import Optional, Protocol, Union

from auth.errors import DeliveryError, NoPendingCodeError, OtpMismatchError
from database.kv_store import TTLStore

logger = logging.getLogger(__name__)

OTP_MIN = 1000
OTP_MAX = 9999


class OtpSender(Protocol):
    async def send(self, email: str, code: str, ttl_seconds: int) -> None:
        ...


class LogOtpSender:
    """Writes the code to the application log instead of delivering it."""

    async def send(self, email: str, code: str, ttl_seconds: int) -> None:
        logger.info("OTP for %s is %s", email, code)


class SmtpOtpSender:
    """Sends the code by email; the blocking SMTP exchange runs in a worker thread."""

    def __init__(
        self,
        *,
        host: str,
        port: int,
        mail_from: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_ssl: bool = False,
        timeout: float = 20,
    ) -> None:
        self._host = host
        self._port = port
        self._mail_from = mail_from
        self._username = username
        self._password = password
        self._use_ssl = use_ssl
        self._timeout = timeout

    def _build_message(self, email: str, code: str, ttl_seconds: int) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self._mail_from
        msg["To"] = email
        msg["Subject"] = "Your verification code"
        msg.set_content(
            f"Your verification code is {code}.\n"
            f"It expires in {ttl_seconds // 60} minutes."
        )
        return msg

    def _send_sync(self, msg: EmailMessage) -> None:
        ctx = ssl.create_default_context()
        if self._use_ssl:
            with smtplib.SMTP_SSL(self._host, self._port, context=ctx, timeout=self._timeout) as s:
                if self._username:
                    s.login(self._username, self._password or "")
                s.send_message(msg)
        else:
            with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as s:
                s.ehlo()
                s.starttls(context=ctx)
                s.ehlo()
                if self._username:
                    s.login(self._username, self._password or "")
                s.send_message(msg)

    async def send(self, email: str, code: str, ttl_seconds: int) -> None:
        msg = self._build_message(email, code, ttl_seconds)
        try:
            await asyncio.to_thread(self._send_sync, msg)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("OTP mail to %s via %s:%s failed: %r", email, self._host, self._port, exc)
            raise DeliveryError("could not deliver OTP") from exc
        logger.info("OTP mailed to %s", email)


def generate_otp() -> str:
    """Uniform random code in [1000, 9999]."""
    return str(OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1))


class OtpService:
    def __init__(self, store: TTLStore, sender: OtpSender, ttl_seconds: int = 300) -> None:
        self._store = store
        self._sender = sender
        self.ttl_seconds = ttl_seconds

    def generate(self) -> str:
        return generate_otp()

    async def issue(self, email: str) -> str:
        """Store a fresh code for *email* and deliver it out of band."""
        code = self.generate()
        await self._store.set(email, code, self.ttl_seconds)
        await self._sender.send(email, code, self.ttl_seconds)
        return code

    async def verify(self, email: str, presented: Union[str, int]) -> None:
        """
        Check *presented* against the pending code for *email*.

        Raises ``NoPendingCodeError`` when nothing is stored (never issued or
        expired) and ``OtpMismatchError`` when the codes differ.
        """
        stored = await self._store.get(email)
        if stored is None:
            raise NoPendingCodeError("no pending code")
        if not hmac.compare_digest(stored.encode(), str(presented).strip().encode()):
            raise OtpMismatchError("code mismatch")

    async def discard(self, email: str) -> None:
        await self._store.delete(email)
