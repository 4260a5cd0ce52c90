"""End-to-end tests for contact, waitlist and availability submissions."""

import re
from datetime import datetime, timedelta

import pytest

from nursery_app.config.settings import settings
from nursery_app.routes.waitlist import estimated_wait_time


def contact_payload(**overrides) -> dict:
    payload = {
        "fullName": "Jane Smith",
        "phoneNumber": "+447123456789",
        "message": "Do you have any places for September?",
    }
    payload.update(overrides)
    return payload


class TestContactInquiry:
    """Tests for POST /api/contact."""

    def test_creates_inquiry(self, client, database) -> None:
        """Test that an enquiry is stored with an INQ reference."""
        response = client.post("/api/contact", json=contact_payload())

        assert response.status_code == 201
        data = response.json()["data"]
        assert re.fullmatch(r"INQ-\d+", data["referenceNumber"])
        stored = database["contact_inquiries"].documents[0]
        assert stored["referenceNumber"] == data["referenceNumber"]
        assert stored["status"] == "new"
        assert stored["source"] == "website_contact_form"

    def test_only_admin_is_notified(self, client, mailer) -> None:
        """Test that enquiries send a single office notification."""
        response = client.post("/api/contact", json=contact_payload())

        reference = response.json()["data"]["referenceNumber"]
        assert len(mailer.sent) == 1
        assert mailer.sent[0].to == settings.ADMIN_EMAIL
        assert mailer.sent[0].subject == f"New Contact Inquiry - {reference}"

    def test_second_inquiry_within_a_day_is_rate_limited(self, client) -> None:
        """Test the one enquiry per phone per 24 hours rule."""
        client.post("/api/contact", json=contact_payload())

        response = client.post("/api/contact", json=contact_payload(message="A follow-up question please"))

        assert response.status_code == 429
        assert response.json()["errors"] == [
            "Duplicate submission detected - please wait 24 hours between inquiries"
        ]

    def test_older_inquiry_does_not_block(self, client, database) -> None:
        """Test that the rate limit window is 24 hours."""
        client.post("/api/contact", json=contact_payload())
        database["contact_inquiries"].documents[0]["createdAt"] = datetime.utcnow() - timedelta(hours=25)

        response = client.post("/api/contact", json=contact_payload())

        assert response.status_code == 201

    @pytest.mark.parametrize(
        "message, error",
        [
            ("Too short", "Message is required and must be at least 10 characters long"),
            ("x" * 1001, "Message must be less than 1000 characters"),
        ],
    )
    def test_message_length_bounds(self, client, message, error) -> None:
        """Test the 10-1000 character message bounds."""
        response = client.post("/api/contact", json=contact_payload(message=message))

        assert response.status_code == 400
        assert response.json()["errors"] == [error]


def waitlist_payload(phone: str = "+447123456789", **overrides) -> dict:
    payload = {
        "fullName": "Jane Smith",
        "phoneNumber": phone,
        "childrenDetails": "Tom, 2 years",
    }
    payload.update(overrides)
    return payload


class TestEstimatedWaitTime:
    """Tests for the waitlist position bands."""

    @pytest.mark.parametrize(
        "position, expected",
        [(1, "1-2 weeks"), (5, "1-2 weeks"), (6, "1-2 months"), (15, "1-2 months"), (16, "2-4 months")],
    )
    def test_bands(self, position, expected) -> None:
        """Test each band boundary."""
        assert estimated_wait_time(position) == expected


class TestWaitlist:
    """Tests for POST and GET /api/waitlist/join."""

    def test_positions_increase(self, client) -> None:
        """Test that each new family joins at the back of the queue."""
        first = client.post("/api/waitlist/join", json=waitlist_payload("+447000000001"))
        second = client.post("/api/waitlist/join", json=waitlist_payload("+447000000002"))

        assert first.status_code == 201
        assert first.json()["data"]["position"] == 1
        assert first.json()["data"]["estimatedWaitTime"] == "1-2 weeks"
        assert second.json()["data"]["position"] == 2
        assert "position 2" in second.json()["message"]

    def test_duplicate_phone_conflicts(self, client) -> None:
        """Test that a phone number can only be listed once."""
        client.post("/api/waitlist/join", json=waitlist_payload())

        response = client.post("/api/waitlist/join", json=waitlist_payload())

        assert response.status_code == 409
        assert response.json()["message"] == "This phone number is already on our waitlist"

    def test_stores_position_and_status(self, client, database) -> None:
        """Test the stored entry."""
        client.post("/api/waitlist/join", json=waitlist_payload(email="Jane@Example.com"))

        stored = database["waitlist"].documents[0]
        assert stored["status"] == "active"
        assert stored["position"] == 1
        assert stored["email"] == "jane@example.com"
        assert stored["reference"].startswith("WAIT-")

    def test_admin_email_carries_pdf(self, client, mailer) -> None:
        """Test that the office copy has the PDF and the family gets a confirmation."""
        response = client.post(
            "/api/waitlist/join",
            json=waitlist_payload(email="jane@example.com", childName="Tom Smith"),
        )

        reference = response.json()["data"]["reference"]
        admin, confirmation = mailer.sent
        assert admin.to == settings.ADMIN_EMAIL
        assert admin.subject == "New Waitlist Registration - Position #1"
        assert [attachment.name for attachment in admin.attachments] == [f"waitlist-{reference}.pdf"]
        assert admin.attachments[0].content.startswith(b"%PDF")
        assert confirmation.to == "jane@example.com"
        assert confirmation.attachments == []

    def test_no_confirmation_without_email(self, client, mailer) -> None:
        """Test that only the office is emailed when no address is given."""
        client.post("/api/waitlist/join", json=waitlist_payload())

        assert [message.to for message in mailer.sent] == [settings.ADMIN_EMAIL]

    def test_invalid_email_is_rejected(self, client) -> None:
        """Test that an optional email is still validated."""
        response = client.post("/api/waitlist/join", json=waitlist_payload(email="not-an-email"))

        assert response.status_code == 400
        assert response.json()["errors"] == ["Please enter a valid email address"]

    def test_status_lookup(self, client) -> None:
        """Test that the position counts active entries created earlier."""
        client.post("/api/waitlist/join", json=waitlist_payload("+447000000001"))
        client.post("/api/waitlist/join", json=waitlist_payload("+447000000002"))

        response = client.get("/api/waitlist/join", params={"phone": "+447000000002"})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["position"] == 2
        assert data["estimatedWaitTime"] == "1-2 weeks"
        assert data["status"] == "active"

    def test_status_requires_phone(self, client) -> None:
        """Test the missing phone parameter."""
        response = client.get("/api/waitlist/join")

        assert response.status_code == 400
        assert response.json()["message"] == "Phone number is required"

    def test_status_unknown_phone(self, client) -> None:
        """Test a phone number that is not on the list."""
        response = client.get("/api/waitlist/join", params={"phone": "+447999999999"})

        assert response.status_code == 404
        assert response.json()["errors"] == ["Phone number not found on waitlist"]


def availability_payload(**overrides) -> dict:
    payload = {
        "fullName": "Jane Smith",
        "phoneNumber": "0123456789",
        "childrenDetails": "Twins, 18 months",
    }
    payload.update(overrides)
    return payload


class TestAvailabilityRequest:
    """Tests for POST /api/availability/check."""

    def test_creates_request(self, client, database, mailer) -> None:
        """Test that a request is stored and the office notified."""
        response = client.post("/api/availability/check", json=availability_payload())

        assert response.status_code == 201
        assert response.json()["data"]["reference"].startswith("AVAIL-")
        assert database["availability_requests"].documents[0]["status"] == "pending"
        assert [message.subject for message in mailer.sent] == ["New Availability Request - Nursery App"]

    def test_duplicate_phone_conflicts(self, client) -> None:
        """Test that a phone number can only ask once."""
        client.post("/api/availability/check", json=availability_payload())

        response = client.post("/api/availability/check", json=availability_payload())

        assert response.status_code == 409
        assert response.json()["errors"] == ["Phone number already registered for availability check"]

    def test_letters_in_phone_are_rejected(self, client) -> None:
        """Test the digits-only phone format."""
        response = client.post("/api/availability/check", json=availability_payload(phoneNumber="0123-CALL-ME"))

        assert response.status_code == 400
        assert response.json()["errors"] == ["Please enter a valid phone number"]
