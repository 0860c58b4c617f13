"""
Tests for OTP generation, issuance, verification and delivery.
"""

import logging
import smtplib
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from auth.errors import DeliveryError, NoPendingCodeError, OtpMismatchError
from auth.otp import LogOtpSender, OtpService, SmtpOtpSender, generate_otp
from database.kv_store import MemoryTTLStore
from tests.conftest import CapturingSender, FakeClock


def _service(ttl: int = 300):
    clock = FakeClock()
    sender = CapturingSender()
    return OtpService(MemoryTTLStore(clock=clock), sender, ttl_seconds=ttl), clock, sender


class TestGenerate:
    def test_four_digit_range(self):
        for _ in range(500):
            code = generate_otp()
            assert len(code) == 4
            assert 1000 <= int(code) <= 9999


class TestOtpService:
    @pytest.mark.asyncio
    async def test_issued_code_is_delivered_and_verifies(self):
        svc, _, sender = _service()
        code = await svc.issue("a@x.com")
        assert sender.sent == [("a@x.com", code)]
        await svc.verify("a@x.com", code)

    @pytest.mark.asyncio
    async def test_integer_code_accepted(self):
        svc, _, _ = _service()
        with patch.object(svc, "generate", return_value="1234"):
            await svc.issue("a@x.com")
        await svc.verify("a@x.com", 1234)

    @pytest.mark.asyncio
    async def test_wrong_code_is_mismatch(self):
        svc, _, _ = _service()
        with patch.object(svc, "generate", return_value="1234"):
            await svc.issue("a@x.com")
        with pytest.raises(OtpMismatchError):
            await svc.verify("a@x.com", "4321")

    @pytest.mark.asyncio
    async def test_code_bound_to_email(self):
        svc, _, _ = _service()
        code = await svc.issue("a@x.com")
        with pytest.raises(NoPendingCodeError):
            await svc.verify("b@x.com", code)

        with patch.object(svc, "generate", return_value="1111"):
            await svc.issue("a@x.com")
        with patch.object(svc, "generate", return_value="2222"):
            await svc.issue("b@x.com")
        with pytest.raises(OtpMismatchError):
            await svc.verify("b@x.com", "1111")

    @pytest.mark.asyncio
    async def test_never_issued(self):
        svc, _, _ = _service()
        with pytest.raises(NoPendingCodeError):
            await svc.verify("nobody@x.com", "1234")

    @pytest.mark.asyncio
    async def test_expires_after_ttl(self):
        svc, clock, _ = _service(ttl=300)
        code = await svc.issue("a@x.com")
        clock.advance(299)
        await svc.verify("a@x.com", code)
        clock.advance(1)
        with pytest.raises(NoPendingCodeError):
            await svc.verify("a@x.com", code)

    @pytest.mark.asyncio
    async def test_reissue_overwrites_previous(self):
        svc, _, _ = _service()
        with patch.object(svc, "generate", return_value="1111"):
            await svc.issue("a@x.com")
        with patch.object(svc, "generate", return_value="2222"):
            await svc.issue("a@x.com")
        with pytest.raises(OtpMismatchError):
            await svc.verify("a@x.com", "1111")
        await svc.verify("a@x.com", "2222")

    @pytest.mark.asyncio
    async def test_verify_keeps_code_until_discarded(self):
        svc, _, _ = _service()
        code = await svc.issue("a@x.com")
        await svc.verify("a@x.com", code)
        await svc.verify("a@x.com", code)
        await svc.discard("a@x.com")
        with pytest.raises(NoPendingCodeError):
            await svc.verify("a@x.com", code)


class TestSenders:
    @pytest.mark.asyncio
    async def test_log_sender(self, caplog):
        with caplog.at_level(logging.INFO, logger="auth.otp"):
            await LogOtpSender().send("a@x.com", "1234", 300)
        assert "OTP for a@x.com is 1234" in caplog.text

    @pytest.mark.asyncio
    async def test_smtp_sender_starttls(self):
        sender = SmtpOtpSender(
            host="smtp.example.com",
            port=587,
            mail_from="auth@example.com",
            username="user",
            password="secret",
        )
        with patch("auth.otp.smtplib.SMTP") as smtp_cls:
            conn = smtp_cls.return_value.__enter__.return_value
            await sender.send("a@x.com", "1234", 300)

        smtp_cls.assert_called_once_with("smtp.example.com", 587, timeout=20)
        conn.starttls.assert_called_once()
        conn.login.assert_called_once_with("user", "secret")
        msg = conn.send_message.call_args.args[0]
        assert msg["To"] == "a@x.com"
        assert "1234" in msg.get_content()
        assert "5 minutes" in msg.get_content()

    @pytest.mark.asyncio
    async def test_smtp_failure_is_delivery_error(self):
        sender = SmtpOtpSender(host="smtp.example.com", port=465, mail_from="auth@example.com", use_ssl=True)
        with patch("auth.otp.smtplib.SMTP_SSL", side_effect=smtplib.SMTPConnectError(421, "busy")):
            with pytest.raises(DeliveryError):
                await sender.send("a@x.com", "1234", 300)

    @pytest.mark.asyncio
    async def test_issue_propagates_delivery_failure(self):
        failing = MagicMock()
        failing.send = AsyncMock(side_effect=DeliveryError("down"))
        svc = OtpService(MemoryTTLStore(), failing)
        with pytest.raises(DeliveryError):
            await svc.issue("a@x.com")
