# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for health endpoints."""

from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from src.api.dependencies import get_session_factory


class TestHealthAPI:
    """Tests for /health and /health/ready."""

    @pytest.mark.asyncio
    async def test_liveness(self, client) -> None:
        """Test that liveness needs no token and is not enveloped."""
        response = await client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["version"] == "1.0.0"
        assert "success" not in body

    @pytest.mark.asyncio
    async def test_ready_with_database(self, client) -> None:
        """Test readiness against the test database."""
        response = await client.get("/health/ready")

        assert response.status_code == 200
        body = response.json()
        assert body["ready"] is True
        assert body["checks"]["database"]["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_not_ready_without_database(self, app, client) -> None:
        """Test that an unreachable database gives 503."""
        broken = MagicMock(side_effect=OperationalError("SELECT 1", {}, Exception("down")))
        app.dependency_overrides[get_session_factory] = lambda: broken

        response = await client.get("/health/ready")

        assert response.status_code == 503
        assert response.json()["checks"]["database"] == {
            "status": "unhealthy",
            "message": "OperationalError",
        }

    @pytest.mark.asyncio
    async def test_unknown_route_enveloped(self, client) -> None:
        """Test that framework 404s use the error envelope."""
        response = await client.get("/api/v1/nothing-here")

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": {"message": "Not Found"}}

    @pytest.mark.asyncio
    async def test_request_id_on_api_responses(self, client) -> None:
        """Test that the request id header reaches API responses."""
        response = await client.get("/health", headers={"X-Request-ID": "abc"})

        assert response.headers["X-Request-ID"] == "abc"
