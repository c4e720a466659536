"""
Tests for waitlistpro/api/health.py - liveness and readiness.
"""
import pytest
from datetime import datetime
from unittest.mock import AsyncMock, patch

from waitlistpro.api.health import health_check, readiness_check


class TestHealthCheck:
    async def test_returns_healthy(self):
        result = await health_check()
        assert result["status"] == "healthy"
        assert result["version"] == "1.0.0"
        parsed = datetime.fromisoformat(result["timestamp"])
        assert parsed.tzinfo is not None


class TestReadinessCheck:
    async def test_all_healthy_returns_ready(self, db, mock_redis):
        result = await readiness_check(db=db)
        assert result["status"] == "ready"
        assert result["checks"] == {"database": True, "redis": True}

    async def test_redis_down_is_degraded(self, db):
        with patch(
            "waitlistpro.utils.redis_client.get_redis",
            new_callable=AsyncMock, side_effect=ConnectionError("refused"),
        ):
            result = await readiness_check(db=db)
        assert result["status"] == "degraded"
        assert result["checks"] == {"database": True, "redis": False}

    async def test_database_down_is_degraded(self, mock_redis):
        mock_db = AsyncMock()
        mock_db.execute = AsyncMock(side_effect=Exception("connection reset"))
        result = await readiness_check(db=mock_db)
        assert result["status"] == "degraded"
        assert result["checks"]["database"] is False
        assert result["checks"]["redis"] is True
