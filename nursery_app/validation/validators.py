"""
Per-form validators
Each validator pairs a rule table with the function that builds the
normalised record once the rules pass.
"""
import re
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from nursery_app.models.booking import (
    CLUB_DAY_PRICE,
    CLUB_TITLES,
    DEPOSIT_TYPES,
    MAX_CLUB_DAYS,
    VISIT_TIMES,
    ClubBooking,
    DepositPayment,
    VisitBooking,
)
from nursery_app.models.enquiry import AvailabilityRequest, ContactInquiry, WaitlistEntry
from nursery_app.models.forms import (
    AboutMeForm,
    ChangeOfDetails,
    ConsentForm,
    FundingDeclaration,
    MedicalForm,
    RegistrationForm,
)
from nursery_app.models.job_application import JobApplication
from nursery_app.models.submission import SubmissionRecord
from nursery_app.utils.helpers import day_start, parse_date
from nursery_app.validation.rules import (
    LOOSE_PHONE_PATTERN,
    CalendarDate,
    Check,
    DateList,
    Email,
    Equals,
    IsTrue,
    LengthBetween,
    MinimumAge,
    NumberBetween,
    OneOf,
    PhoneFormat,
    RequiredFields,
    RequiredString,
    Rule,
    ValidationResult,
    is_number,
    phone_rules,
    validate,
)


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _optional_text(value: Any) -> Optional[str]:
    return _text(value) or None


def field_label(name: str) -> str:
    """'positionApplyingFor' -> 'Position Applying For'"""
    spaced = re.sub(r"([A-Z])", r" \1", name)
    return spaced[:1].upper() + spaced[1:]


class FormValidator:
    """Runs a rule table, then normalises the payload into a record"""

    def __init__(
        self,
        rules: List[Rule],
        build: Callable[[Dict[str, Any]], SubmissionRecord],
        message: str = "Validation failed",
    ):
        self.rules = rules
        self.build = build
        self.message = message

    def __call__(self, data: Any) -> Tuple[ValidationResult, Optional[SubmissionRecord]]:
        result = validate(data, self.rules)
        if not result.is_valid:
            return result, None
        try:
            return result, self.build(data)
        except PydanticValidationError as exc:
            errors = [
                f"Invalid value for {field_label(str(error['loc'][0]))}"
                for error in exc.errors()
                if error['loc']
            ]
            errors = errors or [self.message]
            return ValidationResult(is_valid=False, errors=errors), None


# ─── Visit booking ─────────────────────────────────────────────────────────

def _build_visit_booking(data: Dict[str, Any]) -> VisitBooking:
    return VisitBooking(
        parentName=data["parentName"].strip(),
        childName=data["childName"].strip(),
        childAge=data["childAge"],
        email=data["email"].strip().lower(),
        phone=data["phone"].strip(),
        visitDate=day_start(parse_date(data["visitDate"])),
        visitTime=data["visitTime"],
        message=_text(data.get("message")),
    )


visit_booking_validator = FormValidator(
    rules=[
        RequiredString("parentName", "Parent name is required and must be at least 2 characters long", 2),
        RequiredString("childName", "Child name is required and must be at least 2 characters long", 2),
        NumberBetween("childAge", "Child age must be a number between 0 and 12", 0, 12),
        Email("email", "Please enter a valid email address", trim=True),
        *phone_rules("phone"),
        CalendarDate(
            "visitDate",
            required_message="Visit date is required",
            invalid_message="Please enter a valid visit date",
            past_message="Visit date cannot be in the past",
            weekend_message="Visits are not available on weekends",
        ),
        OneOf("visitTime", VISIT_TIMES, "Please select a valid visit time"),
    ],
    build=_build_visit_booking,
)


# ─── Club booking ──────────────────────────────────────────────────────────

def _total_matches(data: Dict[str, Any]) -> bool:
    dates = data.get("selectedDates")
    total = data.get("totalAmount")
    if not isinstance(dates, list) or not is_number(total):
        return False
    return total == len(dates) * CLUB_DAY_PRICE


def _build_club_booking(data: Dict[str, Any]) -> ClubBooking:
    return ClubBooking(
        parentName=data["parentName"].strip(),
        parentEmail=data["parentEmail"].strip().lower(),
        childName=data["childName"].strip(),
        clubTitle=data["clubTitle"],
        selectedDates=list(data["selectedDates"]),
        clubPrice=data["clubPrice"],
        totalAmount=data["totalAmount"],
    )


club_booking_validator = FormValidator(
    rules=[
        RequiredString("parentName", "Parent name is required and must be at least 2 characters long", 2),
        Email("parentEmail", "A valid email address is required"),
        RequiredString("childName", "Child name is required and must be at least 2 characters long", 2),
        OneOf("clubTitle", CLUB_TITLES, "Invalid club selection"),
        DateList(
            "selectedDates",
            min_items=1,
            max_items=MAX_CLUB_DAYS,
            count_message=f"Please select between 1 and {MAX_CLUB_DAYS} dates",
            invalid_message="Invalid date format",
            past_message="Cannot book dates in the past",
            weekend_message="Cannot book weekend dates",
        ),
        Equals("clubPrice", CLUB_DAY_PRICE, "Invalid club price"),
        Check(_total_matches, "Invalid total amount"),
    ],
    build=_build_club_booking,
)


# ─── Deposit payment ───────────────────────────────────────────────────────

def _build_deposit_payment(data: Dict[str, Any]) -> DepositPayment:
    deposit = DEPOSIT_TYPES[data["depositType"]]
    return DepositPayment(
        parentName=data["parentName"].strip(),
        parentEmail=data["parentEmail"].strip().lower(),
        parentPhone=data["parentPhone"].strip(),
        childName=data["childName"].strip(),
        preferredStartDate=data["preferredStartDate"],
        depositType=data["depositType"],
        depositName=deposit.name,
        amount=deposit.amount,
        refundable=deposit.refundable,
    )


deposit_payment_validator = FormValidator(
    rules=[
        RequiredString("parentName", "Parent name is required and must be at least 2 characters", 2),
        Email("parentEmail", "A valid email address is required"),
        RequiredString("parentPhone", "A valid phone number is required", 10),
        RequiredString("childName", "Child name is required and must be at least 2 characters", 2),
        CalendarDate(
            "preferredStartDate",
            required_message="Preferred start date is required",
            invalid_message="Invalid start date format",
            past_message="Start date cannot be in the past",
        ),
        OneOf("depositType", list(DEPOSIT_TYPES), "Invalid deposit type"),
    ],
    build=_build_deposit_payment,
)


# ─── Contact, waitlist and availability ────────────────────────────────────

FULL_NAME_RULE = RequiredString(
    "fullName", "Full name is required and must be at least 2 characters long", 2
)


def _build_contact(data: Dict[str, Any]) -> ContactInquiry:
    return ContactInquiry(
        fullName=data["fullName"].strip(),
        phoneNumber=data["phoneNumber"].strip(),
        message=data["message"].strip(),
    )


contact_validator = FormValidator(
    rules=[
        FULL_NAME_RULE,
        *phone_rules("phoneNumber"),
        RequiredString("message", "Message is required and must be at least 10 characters long", 10),
        LengthBetween("message", "Message must be less than 1000 characters", max_length=1000, trim=False),
    ],
    build=_build_contact,
)

WAITLIST_DETAIL_FIELDS = [
    "email",
    "childName",
    "childDOB",
    "childGender",
    "preferredStartDate",
    "daysRequired",
    "sessionType",
    "siblingAtNursery",
    "specialRequirements",
]


def _build_waitlist(data: Dict[str, Any]) -> WaitlistEntry:
    details = {name: _optional_text(data.get(name)) for name in WAITLIST_DETAIL_FIELDS}
    if details["email"]:
        details["email"] = details["email"].lower()
    return WaitlistEntry(
        fullName=data["fullName"].strip(),
        phoneNumber=data["phoneNumber"].strip(),
        childrenDetails=_text(data.get("childrenDetails")),
        **details,
    )


waitlist_validator = FormValidator(
    rules=[
        FULL_NAME_RULE,
        *phone_rules("phoneNumber"),
        Email("email", "Please enter a valid email address", required=False, trim=True),
    ],
    build=_build_waitlist,
)


def _build_availability(data: Dict[str, Any]) -> AvailabilityRequest:
    return AvailabilityRequest(
        fullName=data["fullName"].strip(),
        phoneNumber=data["phoneNumber"].strip(),
        childrenDetails=_text(data.get("childrenDetails")),
    )


availability_validator = FormValidator(
    rules=[
        FULL_NAME_RULE,
        *phone_rules("phoneNumber", pattern=LOOSE_PHONE_PATTERN),
    ],
    build=_build_availability,
)


# ─── Job application ───────────────────────────────────────────────────────

JOB_REQUIRED_FIELDS = [
    "positionApplyingFor",
    "fullName",
    "dateOfBirth",
    "nationalInsuranceNumber",
    "emailAddress",
    "phoneNumber",
    "fullHomeAddress",
    "rightToWorkUK",
    "currentDBSCertificate",
    "criminalConvictions",
    "qualifications",
    "employmentHistory",
    "references",
    "whyWorkHere",
    "declaration",
    "date",
]

JOB_PHONE_PATTERN = re.compile(r"^[+]?\d{7,15}$")
YES_NO = ["yes", "no"]


def _build_job_application(data: Dict[str, Any]) -> JobApplication:
    applied_on = parse_date(data.get("date"))
    return JobApplication(
        positionApplyingFor=_text(data["positionApplyingFor"]),
        fullName=_text(data["fullName"]),
        dateOfBirth=data["dateOfBirth"],
        nationalInsuranceNumber=_text(data["nationalInsuranceNumber"]).upper(),
        emailAddress=_text(data["emailAddress"]).lower(),
        phoneNumber=_text(data["phoneNumber"]),
        fullHomeAddress=_text(data["fullHomeAddress"]),
        rightToWorkUK=data["rightToWorkUK"].lower(),
        currentDBSCertificate=data["currentDBSCertificate"].lower(),
        dbsCertificateNumber=_optional_text(data.get("dbsCertificateNumber")),
        criminalConvictions=data["criminalConvictions"].lower(),
        criminalConvictionsDetails=_optional_text(data.get("criminalConvictionsDetails")),
        qualifications=_text(data["qualifications"]),
        relevantTraining=_optional_text(data.get("relevantTraining")),
        employmentHistory=_text(data["employmentHistory"]),
        employmentGaps=_optional_text(data.get("employmentGaps")),
        references=_text(data["references"]),
        whyWorkHere=_text(data["whyWorkHere"]),
        declaration=data["declaration"],
        applicationDate=day_start(applied_on) if applied_on else None,
    )


job_application_validator = FormValidator(
    rules=[
        RequiredFields(JOB_REQUIRED_FIELDS, field_label),
        LengthBetween("fullName", "Full name must be between 2 and 100 characters", 2, 100),
        Email("emailAddress", "Please enter a valid email address", required=False, trim=True),
        PhoneFormat(
            "phoneNumber",
            "Please enter a valid phone number (numbers only, 7-15 digits)",
            JOB_PHONE_PATTERN,
        ),
        MinimumAge("dateOfBirth", 16, "Applicant must be at least 16 years old"),
        OneOf("rightToWorkUK", YES_NO, "Please specify if you have the right to work in the UK",
              required=False, case_insensitive=True),
        OneOf("currentDBSCertificate", YES_NO, "Please specify if you have a current DBS certificate",
              required=False, case_insensitive=True),
        OneOf("criminalConvictions", YES_NO, "Please specify if you have any criminal convictions",
              required=False, case_insensitive=True),
        LengthBetween("qualifications", "Qualifications section must be less than 2000 characters",
                      max_length=2000, trim=False),
        LengthBetween("employmentHistory", "Employment history must be less than 3000 characters",
                      max_length=3000, trim=False),
        LengthBetween("references", "References section must be less than 2000 characters",
                      max_length=2000, trim=False),
        LengthBetween("whyWorkHere", "Why work here section must be less than 1500 characters",
                      max_length=1500, trim=False),
        IsTrue("declaration", "You must confirm the declaration to submit your application"),
    ],
    build=_build_job_application,
    message="Application validation failed. Please check the highlighted fields.",
)


# ─── Enrolment paperwork ───────────────────────────────────────────────────

CHILD_NAME_RULE = RequiredString(
    "childFullName", "Child's full name is required and must be at least 2 characters long", 2
)
PARENT_EMAIL_RULE = Email(
    "parentEmail", "Please enter a valid parent email address", required=False, trim=True
)


def _parent_name_rule(field: str) -> Rule:
    return RequiredString(
        field, "Parent/carer name is required and must be at least 2 characters long", 2
    )


def _form_builder(model):
    """Keep every submitted field, trimming the names the service reads"""

    def build(data: Dict[str, Any]) -> SubmissionRecord:
        document = dict(data)
        document["childFullName"] = data["childFullName"].strip()
        for name in ("parentEmail", "parent1Email"):
            if _text(data.get(name)):
                document[name] = data[name].strip().lower()
            else:
                document.pop(name, None)
        return model(**document)

    return build


about_me_validator = FormValidator(
    rules=[CHILD_NAME_RULE, _parent_name_rule("parentName"), PARENT_EMAIL_RULE],
    build=_form_builder(AboutMeForm),
)

registration_validator = FormValidator(
    rules=[
        CHILD_NAME_RULE,
        _parent_name_rule("parent1Name"),
        Email("parent1Email", "Please enter a valid email address for parent/carer 1",
              required=False, trim=True),
        PARENT_EMAIL_RULE,
    ],
    build=_form_builder(RegistrationForm),
)

consent_validator = FormValidator(
    rules=[CHILD_NAME_RULE, _parent_name_rule("parentName"), PARENT_EMAIL_RULE],
    build=_form_builder(ConsentForm),
)

YES_NO_TITLE = ["Yes", "No"]

medical_validator = FormValidator(
    rules=[
        CHILD_NAME_RULE,
        _parent_name_rule("parentName"),
        OneOf("hasMedicalConditions", YES_NO_TITLE,
              "Please answer Yes or No for medical conditions"),
        OneOf("hasAllergies", YES_NO_TITLE, "Please answer Yes or No for allergies"),
        OneOf("onLongTermMedication", YES_NO_TITLE,
              "Please answer Yes or No for long-term medication"),
        PARENT_EMAIL_RULE,
    ],
    build=_form_builder(MedicalForm),
)

funding_validator = FormValidator(
    rules=[CHILD_NAME_RULE, _parent_name_rule("parentFullName"), PARENT_EMAIL_RULE],
    build=_form_builder(FundingDeclaration),
)

change_validator = FormValidator(
    rules=[CHILD_NAME_RULE, _parent_name_rule("parentName"), PARENT_EMAIL_RULE],
    build=_form_builder(ChangeOfDetails),
)
