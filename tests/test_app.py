"""Tests for the keep-alive cron, root endpoints and database helpers."""

import asyncio
from datetime import datetime, timezone

import pytest

from nursery_app.config.settings import settings
from nursery_app.utils.helpers import generate_reference, to_iso


@pytest.fixture
def cron_secret(monkeypatch) -> str:
    """Configure a cron secret for the duration of a test."""
    monkeypatch.setattr(settings, "CRON_SECRET", "s3cret")
    return "s3cret"


class TestKeepAlive:
    """Tests for GET /api/cron/keep-alive."""

    def test_pings_database(self, client, cron_secret) -> None:
        """Test a successful authorised ping."""
        response = client.get(
            "/api/cron/keep-alive", headers={"Authorization": f"Bearer {cron_secret}"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "MongoDB cluster pinged successfully"
        assert body["timestamp"]

    def test_wrong_token_is_unauthorized(self, client, cron_secret) -> None:
        """Test that the bearer token must match."""
        response = client.get("/api/cron/keep-alive", headers={"Authorization": "Bearer nope"})

        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Unauthorized"}

    def test_missing_secret_is_a_server_error(self, client, monkeypatch) -> None:
        """Test that the endpoint refuses to run without a configured secret."""
        monkeypatch.setattr(settings, "CRON_SECRET", "")

        response = client.get("/api/cron/keep-alive", headers={"Authorization": "Bearer "})

        assert response.status_code == 500
        assert response.json()["message"] == "Server configuration error"

    def test_failed_ping(self, client, database, cron_secret) -> None:
        """Test that a database error is reported as a 500."""
        database.ping_error = RuntimeError("no primary")

        response = client.get(
            "/api/cron/keep-alive", headers={"Authorization": f"Bearer {cron_secret}"}
        )

        assert response.status_code == 500
        assert response.json() == {"success": False, "message": "Failed to ping MongoDB cluster"}
        assert "no primary" not in response.text

    def test_ping_not_ok(self, client, database, cron_secret) -> None:
        """Test that ok != 1 counts as a failure."""
        database.ping_result = {"ok": 0.0}

        response = client.get(
            "/api/cron/keep-alive", headers={"Authorization": f"Bearer {cron_secret}"}
        )

        assert response.status_code == 500


class TestRootEndpoints:
    """Tests for the service level endpoints."""

    def test_root(self, client) -> None:
        """Test the root endpoint."""
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["app"] == settings.APP_NAME

    def test_health(self, client) -> None:
        """Test the health check endpoint."""
        assert client.get("/health").json() == {"status": "healthy"}


class TestDatabaseHelpers:
    """Tests for DBOperations and references."""

    def test_create_stamps_timestamps_and_id(self, db_ops, database) -> None:
        """Test that inserts get createdAt, updatedAt and an _id."""
        document = asyncio.run(db_ops.create("contact_inquiries", {"fullName": "Jane"}))

        assert document["_id"] is not None
        assert document["createdAt"] == document["updatedAt"]
        assert database["contact_inquiries"].documents[0]["fullName"] == "Jane"

    def test_create_overrides_supplied_timestamps(self, db_ops) -> None:
        """Test that caller-supplied createdAt/updatedAt are replaced."""
        document = asyncio.run(
            db_ops.create("medical_forms", {"createdAt": "1999-01-01", "updatedAt": "1999-01-01"})
        )

        assert isinstance(document["createdAt"], datetime)
        assert document["updatedAt"] == document["createdAt"]

    def test_ensure_indexes(self, db_ops) -> None:
        """Test that the visit booking unique indexes are declared."""
        names = asyncio.run(db_ops.ensure_indexes())

        assert names == ["unique_email_per_day", "unique_visit_slot"]

    def test_to_iso_treats_naive_times_as_utc(self) -> None:
        """Test that stored naive datetimes are rendered with a local offset."""
        rendered = to_iso(datetime(2025, 6, 2, 9, 0))

        assert datetime.fromisoformat(rendered) == datetime(2025, 6, 2, 9, 0, tzinfo=timezone.utc)
        assert datetime.fromisoformat(rendered).utcoffset() is not None

    def test_reference_formats(self) -> None:
        """Test references with and without the random suffix."""
        with_suffix = generate_reference("MED").split("-")
        without_suffix = generate_reference("INQ", with_suffix=False).split("-")

        assert with_suffix[0] == "MED"
        assert with_suffix[1].isdigit()
        assert len(with_suffix[2]) == 4
        assert len(without_suffix) == 2
