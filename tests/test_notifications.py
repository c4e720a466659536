"""
Tests for waitlistpro/services/notifications.py - kind dispatch and failure handling.
"""
import pytest
from unittest.mock import AsyncMock, patch

from waitlistpro.services.notifications import send_notification

SENT = {"message_id": "m1", "status": "sent", "error": None}


class TestDispatch:
    async def test_verification(self):
        with patch(
            "waitlistpro.services.transactional_email.send_verification_email",
            new_callable=AsyncMock, return_value=SENT,
        ) as mock_send:
            result = await send_notification(
                "a@b.com", "verification",
                {"waitlist_name": "Acme", "waitlist_slug": "acme", "verify_token": "t"},
            )
        assert result == SENT
        mock_send.assert_awaited_once_with("a@b.com", "Acme", "acme", "t")

    async def test_welcome(self):
        with patch(
            "waitlistpro.services.transactional_email.send_welcome_email",
            new_callable=AsyncMock, return_value=SENT,
        ) as mock_send:
            await send_notification(
                "a@b.com", "welcome",
                {"waitlist_name": "Acme", "waitlist_slug": "acme", "position": 3, "referral_code": "R1"},
            )
        mock_send.assert_awaited_once_with("a@b.com", "Acme", "acme", 3, "R1")

    async def test_invite_without_custom_message(self):
        with patch(
            "waitlistpro.services.transactional_email.send_invite_email",
            new_callable=AsyncMock, return_value=SENT,
        ) as mock_send:
            await send_notification("a@b.com", "invite", {"waitlist_name": "Acme"})
        mock_send.assert_awaited_once_with("a@b.com", "Acme", None)

    async def test_reward_unlock(self):
        with patch(
            "waitlistpro.services.transactional_email.send_reward_email",
            new_callable=AsyncMock, return_value=SENT,
        ) as mock_send:
            await send_notification(
                "a@b.com", "reward_unlock",
                {"waitlist_name": "Acme", "reward_title": "Swag", "referral_count": 5},
            )
        mock_send.assert_awaited_once_with("a@b.com", "Acme", "Swag", None, 5)


class TestFailures:
    async def test_unknown_kind(self):
        result = await send_notification("a@b.com", "sms", {})
        assert result["status"] == "error"
        assert "Unknown notification kind" in result["error"]

    async def test_exception_becomes_error_result(self):
        with patch(
            "waitlistpro.services.transactional_email.send_invite_email",
            new_callable=AsyncMock, side_effect=RuntimeError("boom"),
        ):
            result = await send_notification("a@b.com", "invite", {"waitlist_name": "Acme"})
        assert result == {"message_id": None, "status": "error", "error": "boom"}

    async def test_missing_param_becomes_error_result(self):
        result = await send_notification("a@b.com", "verification", {"waitlist_name": "Acme"})
        assert result["status"] == "error"

    async def test_undelivered_result_passed_through(self):
        failed = {"message_id": None, "status": "error", "error": "SendGrid not configured"}
        with patch(
            "waitlistpro.services.transactional_email.send_invite_email",
            new_callable=AsyncMock, return_value=failed,
        ):
            result = await send_notification("a@b.com", "invite", {"waitlist_name": "Acme"})
        assert result == failed
