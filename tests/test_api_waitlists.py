"""
Tests for waitlistpro/api/waitlists.py - public widget endpoints.
"""
import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from fastapi import HTTPException
from sqlalchemy import select

from conftest import make_reward, make_signup
from waitlistpro.api.helpers import get_client_ip
from waitlistpro.api.waitlists import position, public_info, signup, verify
from waitlistpro.models.signup import Signup
from waitlistpro.schemas.api_responses import PositionRequest, SignupRequest, VerifyRequest


@pytest.fixture
def mock_send(sent_ok):
    with patch(
        "waitlistpro.services.signups.send_notification",
        new_callable=AsyncMock, return_value=sent_ok,
    ) as mock:
        yield mock


def _request(ip="198.51.100.4", headers=None):
    request = MagicMock()
    request.headers = headers or {}
    request.client.host = ip
    return request


class TestClientIp:
    def test_first_forwarded_hop(self):
        request = _request(headers={"x-forwarded-for": "203.0.113.9, 10.0.0.1"})
        assert get_client_ip(request) == "203.0.113.9"

    def test_falls_back_to_peer(self):
        assert get_client_ip(_request(ip="192.0.2.1")) == "192.0.2.1"

    def test_no_client(self):
        request = _request()
        request.client = None
        assert get_client_ip(request) == "unknown"


class TestPublicInfo:
    async def test_returns_widget_info(self, db, waitlist):
        await make_signup(db, waitlist, 1, verified=True)
        await make_signup(db, waitlist, 2)

        info = await public_info("acme-beta", db=db)
        assert info["name"] == "Acme Beta"
        assert info["totalSignups"] == 2
        assert info["verifiedSignups"] == 1

    async def test_unknown_slug_is_404(self, db):
        with pytest.raises(HTTPException) as exc_info:
            await public_info("nope", db=db)
        assert exc_info.value.status_code == 404


class TestSignupEndpoint:
    async def test_records_request_metadata(self, db, waitlist, mock_send):
        request = _request(headers={
            "x-forwarded-for": "203.0.113.50",
            "user-agent": "Mozilla/5.0",
            "referer": "https://acme.com/launch",
        })
        result = await signup("acme-beta", SignupRequest(email="jane.doe@gmail.com"), request, db=db)
        assert result["position"] == 1

        row = (await db.execute(select(Signup))).scalar_one()
        assert row.ip_address == "203.0.113.50"
        assert row.user_agent == "Mozilla/5.0"
        assert row.referrer_url == "https://acme.com/launch"

    async def test_fraud_rejection_is_400_with_reason(self, db, waitlist, mock_send):
        with pytest.raises(HTTPException) as exc_info:
            await signup("acme-beta", SignupRequest(email="jane@mailinator.com"), _request(), db=db)
        assert exc_info.value.status_code == 400
        assert exc_info.value.detail == "Disposable email addresses are not allowed"

    async def test_invalid_email_is_400(self, db, waitlist, mock_send):
        with pytest.raises(HTTPException) as exc_info:
            await signup("acme-beta", SignupRequest(email="not-an-email"), _request(), db=db)
        assert exc_info.value.status_code == 400

    async def test_already_verified_is_409(self, db, waitlist, mock_send):
        await make_signup(db, waitlist, 1, email="jane.doe@gmail.com", verified=True)
        with pytest.raises(HTTPException) as exc_info:
            await signup("acme-beta", SignupRequest(email="jane.doe@gmail.com"), _request(), db=db)
        assert exc_info.value.status_code == 409


class TestVerifyEndpoint:
    async def test_verifies_and_reports_reward(self, db, waitlist, mock_send):
        await make_reward(db, waitlist, 1, title="Early access")
        await make_signup(db, waitlist, 1, referral_code="REFR0001", referral_count=1)
        await make_signup(db, waitlist, 2, referred_by="REFR0001", verify_token="tok-2")

        with patch(
            "waitlistpro.services.referrals.send_notification",
            new_callable=AsyncMock, return_value=mock_send.return_value,
        ):
            result = await verify("acme-beta", VerifyRequest(token="tok-2"), db=db)
        assert result["position"] == 2
        assert result["rewardUnlocked"] == "Early access"

    async def test_bad_token_is_404(self, db, waitlist, mock_send):
        with pytest.raises(HTTPException) as exc_info:
            await verify("acme-beta", VerifyRequest(token="missing"), db=db)
        assert exc_info.value.status_code == 404


class TestPositionEndpoint:
    async def test_returns_progress(self, db, waitlist):
        await make_reward(db, waitlist, 3, title="Swag")
        await make_signup(db, waitlist, 1, referral_code="REFR0001", referral_count=1, verified=True)

        result = await position("acme-beta", PositionRequest(referralCode="REFR0001"), db=db)
        assert result["position"] == 1
        assert result["referralCount"] == 1
        assert result["nextReward"]["referralsNeeded"] == 2

    async def test_unknown_code_is_404(self, db, waitlist):
        with pytest.raises(HTTPException) as exc_info:
            await position("acme-beta", PositionRequest(referralCode="ZZZZ"), db=db)
        assert exc_info.value.status_code == 404
