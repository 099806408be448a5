"""
Tests for the health check endpoint.
"""

import json

import pytest
from django.db import DatabaseError
from django.test import RequestFactory

from core.views import health_check


@pytest.mark.django_db
class TestHealthCheck:
    def test_healthy(self, client):
        response = client.get("/health/")

        assert response.status_code == 200
        assert response.json() == {
            "status": "healthy",
            "database": "connected",
            "cache": "connected",
        }

    def test_database_outage_returns_503(self, mocker):
        connection = mocker.patch("core.views.connection")
        connection.cursor.side_effect = DatabaseError("down")

        response = health_check(RequestFactory().get("/health/"))

        body = json.loads(response.content)
        assert response.status_code == 503
        assert body["database"] == "disconnected"
        assert body["status"] == "unhealthy"
