"""Tests for the field rules and per-form validators."""

from datetime import date, datetime, timedelta

import pytest

from nursery_app.validation.rules import (
    Email,
    RequiredFields,
    date_errors,
    phone_rules,
    validate,
)
from nursery_app.validation.validators import (
    club_booking_validator,
    field_label,
    job_application_validator,
    medical_validator,
    visit_booking_validator,
)
from nursery_app.utils.helpers import local_today

PHONE_LENGTH = "Phone number is required and must be at least 10 characters long"
PHONE_FORMAT = "Please enter a valid phone number"


def _weekday_after(day: date) -> date:
    day += timedelta(days=1)
    while day.weekday() >= 5:
        day += timedelta(days=1)
    return day


class TestPhoneRules:
    """Tests for the stacked length and format phone checks."""

    def test_rejects_short_number(self) -> None:
        """Test that a five digit number fails the length check."""
        result = validate({"phone": "12345"}, phone_rules("phone"))

        assert not result.is_valid
        assert PHONE_LENGTH in result.errors

    def test_accepts_international_number(self) -> None:
        """Test that an E.164 number passes both checks."""
        assert validate({"phone": "+14155552671"}, phone_rules("phone")).is_valid

    def test_accepts_uk_national_number(self) -> None:
        """Test that a UK mobile typed with a leading zero passes."""
        assert validate({"phone": "07123456789"}, phone_rules("phone")).is_valid

    def test_ignores_spaces_dashes_and_brackets(self) -> None:
        """Test that separators are stripped before the format check."""
        assert validate({"phone": "(0712) 345-6789"}, phone_rules("phone")).is_valid

    def test_long_garbage_fails_format_only(self) -> None:
        """Test that a long garbage value reports only the format error."""
        result = validate({"phone": "call me maybe"}, phone_rules("phone"))

        assert result.errors == [PHONE_FORMAT]

    def test_short_garbage_reports_both_errors(self) -> None:
        """Test that the two checks stack independently."""
        result = validate({"phone": "abc"}, phone_rules("phone"))

        assert result.errors == [PHONE_LENGTH, PHONE_FORMAT]


class TestEmailRule:
    """Tests for the email pattern rule."""

    @pytest.mark.parametrize(
        "value, valid",
        [("a@b.co", True), ("a@b", False), ("a.com", False), ("", False)],
    )
    def test_required_email_examples(self, value, valid) -> None:
        """Test the accepted and rejected address shapes."""
        result = validate({"email": value}, [Email("email", "bad")])

        assert result.is_valid is valid
        assert result.errors == ([] if valid else ["bad"])

    def test_accepts_plain_address(self) -> None:
        """Test that a normal address passes."""
        assert validate({"email": "parent@example.com"}, [Email("email", "bad")]).is_valid

    def test_rejects_missing_domain_dot(self) -> None:
        """Test that an address without a dotted domain fails."""
        assert validate({"email": "parent@example"}, [Email("email", "bad")]).errors == ["bad"]

    def test_rejects_trailing_newline(self) -> None:
        """Test that the whole value must match, not just a prefix."""
        assert not validate({"email": "parent@example.com\n"}, [Email("email", "bad")]).is_valid

    def test_optional_email_may_be_absent(self) -> None:
        """Test that an optional email is only checked when given."""
        assert validate({}, [Email("email", "bad", required=False)]).is_valid


class TestDateErrors:
    """Tests for calendar date checks against a fixed today."""

    today = date(2025, 6, 2)  # a Monday

    def test_accepts_future_weekday(self) -> None:
        """Test that a later weekday is accepted."""
        assert date_errors("2025-06-04", "invalid", "past", "weekend", self.today) == []

    def test_today_is_not_in_the_past(self) -> None:
        """Test that the current day can still be booked."""
        assert date_errors("2025-06-02", "invalid", "past", "weekend", self.today) == []

    def test_rejects_past_date(self) -> None:
        """Test that yesterday reports the past message."""
        assert date_errors("2025-06-01", "invalid", "past", "weekend", self.today) == ["past"]

    def test_rejects_weekend(self) -> None:
        """Test that a Saturday reports the weekend message."""
        assert date_errors("2025-06-07", "invalid", "past", "weekend", self.today) == ["weekend"]

    def test_weekend_allowed_without_message(self) -> None:
        """Test that weekends pass when no weekend message is configured."""
        assert date_errors("2025-06-07", "invalid", "past", None, self.today) == []

    def test_rejects_unparseable_value(self) -> None:
        """Test that garbage reports the invalid message."""
        assert date_errors("next tuesday", "invalid", "past", "weekend", self.today) == ["invalid"]

    def test_accepts_iso_timestamp(self) -> None:
        """Test that a full ISO timestamp is reduced to its date."""
        assert date_errors("2025-06-04T10:00:00.000Z", "invalid", "past", "weekend", self.today) == []


class TestRequiredFields:
    """Tests for the required field list rule."""

    def test_reports_each_missing_field_with_label(self) -> None:
        """Test that messages use the humanised field label."""
        rule = RequiredFields(["fullName", "emailAddress"], field_label)

        assert validate({"fullName": "  "}, [rule]).errors == [
            "Full Name is required",
            "Email Address is required",
        ]

    def test_field_label_splits_camel_case(self) -> None:
        """Test the camelCase to words conversion."""
        assert field_label("positionApplyingFor") == "Position Applying For"


class TestVisitBookingValidator:
    """Tests for the visit booking validator."""

    def _payload(self, visit_date: date) -> dict:
        return {
            "parentName": "Jane Smith",
            "childName": "Tom Smith",
            "childAge": 3,
            "email": "  Jane.Smith@Example.com ",
            "phone": "07123 456789",
            "visitDate": visit_date.isoformat(),
            "visitTime": "10:00 AM",
        }

    def test_empty_body_reports_every_error(self) -> None:
        """Test that all failing rules are reported in one pass."""
        result, record = visit_booking_validator({})

        assert record is None
        assert result.errors == [
            "Parent name is required and must be at least 2 characters long",
            "Child name is required and must be at least 2 characters long",
            "Child age must be a number between 0 and 12",
            "Please enter a valid email address",
            PHONE_LENGTH,
            "Visit date is required",
            "Please select a valid visit time",
        ]

    def test_non_object_body_is_treated_as_empty(self) -> None:
        """Test that a JSON list fails validation instead of crashing."""
        result, record = visit_booking_validator(["not", "an", "object"])

        assert not result.is_valid
        assert record is None

    def test_normalises_valid_booking(self, future_weekday: date) -> None:
        """Test that email is lowercased and the date stored as midnight."""
        result, record = visit_booking_validator(self._payload(future_weekday))

        assert result.is_valid
        assert record.email == "jane.smith@example.com"
        assert record.visitDate == datetime.combine(future_weekday, datetime.min.time())
        assert record.message == ""

    def test_rejects_child_age_out_of_range(self, future_weekday: date) -> None:
        """Test the 0-12 child age bound."""
        payload = self._payload(future_weekday)
        payload["childAge"] = 13

        result, _ = visit_booking_validator(payload)

        assert result.errors == ["Child age must be a number between 0 and 12"]

    def test_rejects_unknown_visit_time(self, future_weekday: date) -> None:
        """Test that only the published slots are accepted."""
        payload = self._payload(future_weekday)
        payload["visitTime"] = "12:30 PM"

        result, _ = visit_booking_validator(payload)

        assert result.errors == ["Please select a valid visit time"]


class TestClubBookingValidator:
    """Tests for the club booking validator."""

    def _payload(self, first: date, days: int = 2) -> dict:
        dates = [first]
        while len(dates) < days:
            dates.append(_weekday_after(dates[-1]))
        return {
            "parentName": "Jane Smith",
            "parentEmail": "jane@example.com",
            "childName": "Tom Smith",
            "clubTitle": "Breakfast Club",
            "selectedDates": [day.isoformat() for day in dates],
            "clubPrice": 8,
            "totalAmount": 8 * days,
        }

    def test_accepts_valid_booking(self, future_weekday: date) -> None:
        """Test that a consistent booking passes."""
        result, record = club_booking_validator(self._payload(future_weekday))

        assert result.is_valid
        assert record.totalAmount == 16

    def test_rejects_mismatched_total(self, future_weekday: date) -> None:
        """Test the total equals price times days cross-check."""
        payload = self._payload(future_weekday)
        payload["totalAmount"] = 20

        result, _ = club_booking_validator(payload)

        assert result.errors == ["Invalid total amount"]

    def test_rejects_more_than_five_days(self, future_weekday: date) -> None:
        """Test the upper bound on selected dates."""
        result, _ = club_booking_validator(self._payload(future_weekday, days=6))

        assert result.errors == ["Please select between 1 and 5 dates"]

    def test_rejects_weekend_date(self, future_weekday: date, future_saturday: date) -> None:
        """Test that a Saturday in the list is rejected."""
        payload = self._payload(future_weekday)
        payload["selectedDates"][1] = future_saturday.isoformat()

        result, _ = club_booking_validator(payload)

        assert result.errors == ["Cannot book weekend dates"]

    def test_rejects_past_date(self, future_weekday: date) -> None:
        """Test that a date before today is rejected."""
        payload = self._payload(future_weekday)
        payload["selectedDates"][0] = (local_today() - timedelta(days=30)).isoformat()

        result, _ = club_booking_validator(payload)

        assert result.errors == ["Cannot book dates in the past"]

    def test_rejects_wrong_price(self, future_weekday: date) -> None:
        """Test that the per-day price is fixed."""
        payload = self._payload(future_weekday)
        payload["clubPrice"] = 5

        result, _ = club_booking_validator(payload)

        assert result.errors == ["Invalid club price"]

    def test_rejects_unknown_club(self, future_weekday: date) -> None:
        """Test the club title enumeration."""
        payload = self._payload(future_weekday)
        payload["clubTitle"] = "Lunch Club"

        result, _ = club_booking_validator(payload)

        assert result.errors == ["Invalid club selection"]


def job_payload(**overrides) -> dict:
    payload = {
        "positionApplyingFor": "Nursery Practitioner",
        "fullName": "Sam Taylor",
        "dateOfBirth": "1990-05-01",
        "nationalInsuranceNumber": "qq123456c",
        "emailAddress": "Sam.Taylor@Example.com",
        "phoneNumber": "07123456789",
        "fullHomeAddress": "1 High Street, Croydon",
        "rightToWorkUK": "Yes",
        "currentDBSCertificate": "no",
        "criminalConvictions": "no",
        "qualifications": "Level 3 Early Years Educator",
        "employmentHistory": "Three years at a local nursery",
        "references": "Available on request",
        "whyWorkHere": "I love working with young children",
        "declaration": True,
        "date": local_today().isoformat(),
    }
    payload.update(overrides)
    return payload


class TestJobApplicationValidator:
    """Tests for the job application validator."""

    def test_normalises_valid_application(self) -> None:
        """Test that answers are lowercased and NI number uppercased."""
        result, record = job_application_validator(job_payload())

        assert result.is_valid
        assert record.rightToWorkUK == "yes"
        assert record.nationalInsuranceNumber == "QQ123456C"
        assert record.emailAddress == "sam.taylor@example.com"

    def test_missing_fields_use_labels(self) -> None:
        """Test that required field messages are humanised."""
        result, _ = job_application_validator(job_payload(positionApplyingFor="", whyWorkHere=""))

        assert "Position Applying For is required" in result.errors
        assert "Why Work Here is required" in result.errors

    def test_rejects_applicant_under_sixteen(self) -> None:
        """Test the minimum age check."""
        born = local_today().replace(year=local_today().year - 15, day=1)

        result, _ = job_application_validator(job_payload(dateOfBirth=born.isoformat()))

        assert result.errors == ["Applicant must be at least 16 years old"]

    def test_requires_declaration(self) -> None:
        """Test that an unticked declaration is rejected."""
        result, _ = job_application_validator(job_payload(declaration=False))

        assert "You must confirm the declaration to submit your application" in result.errors

    def test_rejects_invalid_yes_no_answer(self) -> None:
        """Test the yes/no enumeration for background questions."""
        result, _ = job_application_validator(job_payload(criminalConvictions="maybe"))

        assert result.errors == ["Please specify if you have any criminal convictions"]

    def test_wrong_value_type_is_a_validation_error(self) -> None:
        """Test that a non-string date of birth is reported, not raised."""
        result, record = job_application_validator(job_payload(dateOfBirth=19900501))

        assert record is None
        assert result.errors == ["Invalid value for Date Of Birth"]

    def test_uses_application_message(self) -> None:
        """Test the envelope message for job application failures."""
        assert job_application_validator.message == (
            "Application validation failed. Please check the highlighted fields."
        )


class TestMedicalValidator:
    """Tests for the medical form validator."""

    def test_requires_yes_or_no_answers(self) -> None:
        """Test that each medical question must be answered Yes or No."""
        result, _ = medical_validator({
            "childFullName": "Tom Smith",
            "parentName": "Jane Smith",
            "hasMedicalConditions": "No",
            "hasAllergies": "yes",
        })

        assert result.errors == [
            "Please answer Yes or No for allergies",
            "Please answer Yes or No for long-term medication",
        ]

    def test_keeps_extra_fields(self) -> None:
        """Test that fields the service does not read are kept as submitted."""
        result, record = medical_validator({
            "childFullName": " Tom Smith ",
            "parentName": "Jane Smith",
            "parentEmail": "JANE@example.com",
            "hasMedicalConditions": "No",
            "hasAllergies": "Yes",
            "onLongTermMedication": "No",
            "allergiesDetails": "Peanuts",
        })

        document = record.to_document()
        assert result.is_valid
        assert document["childFullName"] == "Tom Smith"
        assert document["parentEmail"] == "jane@example.com"
        assert document["allergiesDetails"] == "Peanuts"
