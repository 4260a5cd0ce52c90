"""
PDF builders for the document-backed submission types
Each builder is pure: form data in, block tree out. ``render_pdf`` does the
drawing, so tests can assert on structure without parsing PDF bytes.
"""
from typing import Any, Dict, List, Optional

from nursery_app.pdf.layout import (
    BulletList,
    ConsentItem,
    HighlightBox,
    InfoBox,
    PDFDocument,
    TextLine,
    declaration,
    field,
    full_width,
    section,
)
from nursery_app.utils.helpers import format_long_date, format_timestamp

CONSENT_ITEMS = [
    ("localWalks", "Local walks and short outings"),
    ("photoDisplays", "Use of child's photo on nursery displays"),
    ("photoLearningJournal", "Use of child's photo in online learning journal"),
    ("groupPhotos", "Group photos"),
    ("emergencyMedical", "Emergency medical treatment"),
    ("sunCream", "Application of sun cream"),
    ("facePainting", "Face painting activities"),
    ("toothbrushing", "Toothbrushing at nursery"),
    ("studentObservations", "Observations by students/staff in training"),
    ("petsAnimals", "Contact with pets or visiting animals"),
    ("firstAidPlasters", "Use of plasters or bandages for first aid"),
]


def _date(value) -> Optional[str]:
    return format_long_date(value) if value else None


def _joined(value, default: Optional[str] = None) -> Optional[str]:
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item) for item in value) or default
    return value or default


def _items(value) -> List[str]:
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value if item]
    return [value] if value else []


def _upper(value) -> Optional[str]:
    return value.upper() if isinstance(value, str) else value


def _document(title: str, reference: str, submitted_at: Optional[str], blocks) -> PDFDocument:
    return PDFDocument(
        title=title,
        reference=reference,
        submitted_at=submitted_at or format_timestamp(),
        blocks=[block for block in blocks if block is not None],
    )


def job_application_pdf(data: Dict[str, Any], reference: str, submitted_at: Optional[str] = None) -> PDFDocument:
    return _document("Job Application", reference, submitted_at, [
        section("Position Applied For", declaration(TextLine(text=data.get("positionApplyingFor", ""), style="emphasis"))),
        section(
            "Personal Information",
            field("Full Name", data.get("fullName")),
            field("Date of Birth", _date(data.get("dateOfBirth"))),
            field("Email Address", data.get("emailAddress")),
            field("Phone Number", data.get("phoneNumber")),
            field("National Insurance", data.get("nationalInsuranceNumber")),
            field("Home Address", data.get("fullHomeAddress")),
        ),
        section(
            "Work Authorization",
            field("Right to Work in UK", _upper(data.get("rightToWorkUK"))),
            field("Current DBS Certificate", _upper(data.get("currentDBSCertificate"))),
            field("DBS Certificate Number", data.get("dbsCertificateNumber")),
            field("Criminal Convictions", _upper(data.get("criminalConvictions"))),
            full_width("Criminal Conviction Details", data.get("criminalConvictionsDetails")),
        ),
        section(
            "Qualifications & Training",
            full_width("Qualifications", data.get("qualifications")),
            full_width("Relevant Training", data.get("relevantTraining")),
        ),
        section(
            "Employment History",
            full_width("Employment History", data.get("employmentHistory")),
            full_width("Employment Gaps Explanation", data.get("employmentGaps")),
        ),
        section("References", full_width("Professional References", data.get("references"))),
        section("Motivation", full_width("Why do you want to work at Spring Lane Nursery?", data.get("whyWorkHere"))),
        InfoBox(text="This application was submitted electronically and constitutes a declaration "
                     "that all information provided is accurate and complete."),
    ])


def child_registration_pdf(data: Dict[str, Any], reference: str, submitted_at: Optional[str] = None) -> PDFDocument:
    parent2 = None
    if data.get("parent2Name"):
        parent2 = section(
            "Parent/Carer 2",
            field("Full Name", data.get("parent2Name")),
            field("Relationship", data.get("parent2Relationship")),
            field("Email Address", data.get("parent2Email")),
            field("Phone Number", data.get("parent2Phone")),
        )

    return _document("Child Registration", reference, submitted_at, [
        section(
            "Child Details",
            field("Full Name", data.get("childFullName")),
            field("Date of Birth", _date(data.get("childDOB"))),
            field("Gender", data.get("childGender") or "Not specified"),
            field("NHS Number", data.get("childNHS") or "Not provided"),
            field("Home Address", data.get("homeAddress")),
            field("Postcode", data.get("postcode")),
        ),
        section(
            "Parent/Carer 1 (Primary Contact)",
            field("Full Name", data.get("parent1Name")),
            field("Relationship", data.get("parent1Relationship")),
            field("Email Address", data.get("parent1Email")),
            field("Phone Number", data.get("parent1Phone")),
            field("Parental Responsibility", data.get("parent1ParentalResponsibility")),
        ),
        parent2,
        section(
            "Emergency Contacts",
            field("Emergency Contact 1", data.get("emergencyContact1")),
            field("Emergency Contact 2", data.get("emergencyContact2")),
        ),
        section(
            "Medical Information",
            field("GP Name/Surgery", data.get("gpName")),
            field("Immunisations", data.get("immunisations")),
            field("Allergies", data.get("allergies")),
            field("Dietary Requirements", data.get("dietaryNeeds")),
        ),
        section(
            "Session Details",
            field("Requested Start Date", _date(data.get("startDate"))),
            field("Days Attending", _joined(data.get("daysAttending"))),
            field("Session Type", data.get("sessionType")),
            field("Funded Hours", data.get("fundedHours")),
        ),
        InfoBox(text="By submitting this registration, I confirm that all information provided is "
                     "accurate and I agree to notify the nursery of any changes."),
    ])


def about_me_pdf(data: Dict[str, Any], reference: str, submitted_at: Optional[str] = None) -> PDFDocument:
    personality = None
    if data.get("personality") or data.get("emotionalExpression") or data.get("fearsOrDislikes"):
        personality = section(
            "Personality & Behaviour",
            full_width("Personality Description", data.get("personality")),
            full_width("How they express emotions", data.get("emotionalExpression")),
            full_width("Fears or Dislikes", data.get("fearsOrDislikes")),
        )

    hopes = None
    if data.get("parentalHopes") or data.get("concerns"):
        hopes = section(
            "Parental Hopes & Concerns",
            full_width("Hopes & Goals for Nursery", data.get("parentalHopes")),
            full_width("Any Concerns", data.get("concerns")),
        )

    return _document("All About Me", reference, submitted_at, [
        section(
            "Child Details",
            field("Full Name", data.get("childFullName")),
            field("Date of Birth", _date(data.get("childDOB"))),
            field("Preferred Name", data.get("preferredName") or "Same as above"),
            field("Languages Spoken", data.get("languagesSpoken") or "English"),
            field("Siblings", data.get("siblings") or "None"),
            field("Submitted by", data.get("parentName")),
        ),
        personality,
        section(
            "Eating & Drinking",
            field("Feeds Themselves", data.get("feedsThemselves") or "Not specified"),
            field("Uses Cutlery", data.get("usesCutlery") or "Not specified"),
            full_width("Preferred Foods", data.get("preferredFoods")),
            field("Foods to Avoid", data.get("foodsToAvoid")),
        ),
        section(
            "Sleeping & Comfort",
            field("Takes Naps", data.get("takesNaps") or "Not specified"),
            field("Usual Nap Time", data.get("napTime") or "N/A"),
            field("Comfort Item", data.get("comfortItem") or "None"),
            full_width("Sleep Routine", data.get("sleepRoutine")),
        ),
        section(
            "Toileting",
            field("Toilet Trained", data.get("toiletTrained") or "Not specified"),
            field("Uses", _joined(data.get("toiletUse"), "Not specified")),
            full_width("Toileting Routines", data.get("toiletingRoutines")),
        ),
        section(
            "Likes & Interests",
            full_width("Favourite Toys", data.get("favouriteToys")),
            full_width("Favourite Songs/Books", data.get("favouriteSongs")),
            full_width("What Makes Them Happy", data.get("whatMakesHappy")),
        ),
        hopes,
        InfoBox(text="This information helps us understand your child better and provide "
                     "personalized care from day one."),
    ])


def has_medical_alerts(data: Dict[str, Any]) -> bool:
    return "Yes" in (
        data.get("hasMedicalConditions"),
        data.get("hasAllergies"),
        data.get("onLongTermMedication"),
    )


def medical_form_pdf(data: Dict[str, Any], reference: str, submitted_at: Optional[str] = None) -> PDFDocument:
    alert = None
    if has_medical_alerts(data):
        alert = HighlightBox(
            title="IMPORTANT: This child has medical conditions, allergies, or medications "
                  "that staff must be aware of.",
            tone="denied",
        )

    conditions_details = None
    if data.get("hasMedicalConditions") == "Yes":
        conditions_details = full_width("Medical Conditions Details", data.get("medicalConditionsDetails"))

    allergy_details = None
    if data.get("hasAllergies") == "Yes":
        allergy_details = full_width("Allergies Details", data.get("allergiesDetails"))

    medication_details = None
    if data.get("onLongTermMedication") == "Yes":
        medication_details = full_width("Medication Details", data.get("longTermMedicationDetails"))

    administration = None
    if data.get("medicationName"):
        administration = section(
            "Medication Administration Details",
            field("Medication Name", data.get("medicationName")),
            field("Dosage", data.get("medicationDosage")),
            field("Frequency", data.get("medicationFrequency")),
            field("Storage Requirements", data.get("medicationStorage")),
            field("Start Date", _date(data.get("medicationStartDate"))),
            field("End Date", _date(data.get("medicationEndDate"))),
        )

    address = ", ".join(part for part in (data.get("homeAddress"), data.get("postcode")) if part)

    return _document("Medical Form", reference, submitted_at, [
        alert,
        section(
            "Child Details",
            field("Full Name", data.get("childFullName")),
            field("Date of Birth", _date(data.get("childDOB"))),
            field("Home Address", address),
        ),
        section(
            "GP Information",
            field("GP Name", data.get("gpName")),
            field("GP Address & Phone", data.get("gpAddress")),
            field("Health Visitor", data.get("healthVisitor")),
        ),
        section(
            "Medical Conditions",
            field("Has Medical Conditions", data.get("hasMedicalConditions")),
            conditions_details,
        ),
        section(
            "Allergies & Intolerances",
            field("Has Allergies", data.get("hasAllergies")),
            allergy_details,
        ),
        section(
            "Long-Term Medication",
            field("On Long-Term Medication", data.get("onLongTermMedication")),
            medication_details,
        ),
        administration,
        section(
            "Emergency Medical Consent",
            declaration(
                TextLine(text="I consent to emergency medical treatment and procedures if required."),
                field("Consented by", data.get("parentName")),
            ),
        ),
        InfoBox(text="This medical information will be kept confidential and shared only with "
                     "staff who need to know for your child's safety and wellbeing."),
    ])


def consent_form_pdf(data: Dict[str, Any], reference: str, submitted_at: Optional[str] = None) -> PDFDocument:
    granted = [ConsentItem(label=label, granted=True) for key, label in CONSENT_ITEMS if data.get(key) is True]
    denied = [ConsentItem(label=label, granted=False) for key, label in CONSENT_ITEMS if data.get(key) is False]

    granted_section = section("Consents Granted", *granted)
    if not granted:
        granted_section = section("Consents Granted", TextLine(text="No specific consents granted"))

    comments = None
    if data.get("additionalComments"):
        comments = section("Additional Comments", full_width("Comments", data.get("additionalComments")))

    return _document("Consent Form", reference, submitted_at, [
        section(
            "Child Details",
            field("Full Name", data.get("childFullName")),
            field("Date of Birth", _date(data.get("childDOB"))),
        ),
        granted_section,
        section("Consents Not Granted", *denied) if denied else None,
        comments,
        section(
            "Declaration",
            declaration(
                field("Signed by", data.get("parentName")),
                field("Date", _date(data.get("date"))),
            ),
        ),
        InfoBox(text="These consent preferences can be updated at any time by submitting a new "
                     "consent form or contacting the nursery directly."),
    ])


def funding_declaration_pdf(data: Dict[str, Any], reference: str, submitted_at: Optional[str] = None) -> PDFDocument:
    reminder = None
    if data.get("thirtyHourCode"):
        reminder = InfoBox(
            title="REMINDER: 30-Hour Eligibility Reconfirmation",
            text="You must reconfirm your eligibility code every 3 months to avoid losing your "
                 "extended entitlement. Set a reminder to check your code before it expires.",
        )

    return _document("Funding Declaration", reference, submitted_at, [
        section(
            "Child Details",
            field("Full Name", data.get("childFullName")),
            field("Date of Birth", _date(data.get("childDOB"))),
            field("Home Address", data.get("homeAddress")),
            field("Postcode", data.get("postcode")),
        ),
        section(
            "Parent/Carer Details",
            field("Full Name", data.get("parentFullName")),
            field("National Insurance Number", data.get("nationalInsuranceNumber")),
            field("Employment Status", data.get("employmentStatus")),
            field("30-Hour Eligibility Code", data.get("thirtyHourCode")),
        ),
        section("Funding Types Claimed", BulletList(items=_items(data.get("fundingTypes")))),
        section(
            "Declaration",
            declaration(
                TextLine(text="I declare that the information provided in this form is accurate and "
                              "complete. I understand that:"),
                BulletList(items=[
                    "I must notify the nursery of any changes to my circumstances",
                    "If claiming 30 hours, I must reconfirm eligibility every 3 months",
                    "Providing false information may result in loss of funding",
                    "The Local Authority may verify this information",
                ]),
            ),
        ),
        reminder,
        InfoBox(text="This declaration will be verified with the Local Authority. You will be "
                     "notified of the outcome within 5-7 business days."),
    ])


def change_details_pdf(data: Dict[str, Any], reference: str, submitted_at: Optional[str] = None) -> PDFDocument:
    effective = _date(data.get("effectiveFrom")) or ""
    return _document("Change of Details", reference, submitted_at, [
        HighlightBox(
            title="ACTION REQUIRED: Please update child records",
            text=f"Effective from: {effective}",
        ),
        section(
            "Child Details",
            field("Full Name", data.get("childFullName")),
            field("Date of Birth", _date(data.get("childDOB"))),
        ),
        section("Type of Changes", BulletList(items=_items(data.get("changeTypes")))),
        section("New Information", full_width("Updated Details", data.get("newInformation"))),
        section(
            "Effective Date",
            declaration(TextLine(text=f"Changes Effective From: {effective}", style="centered")),
        ),
        section(
            "Submitted By",
            field("Parent/Carer Name", data.get("parentName")),
            field("Submission Date", _date(data.get("date"))),
        ),
        InfoBox(text="Your changes will be processed within 24 hours. All relevant staff will be "
                     "notified of the updates. You will receive confirmation once complete."),
    ])


def waitlist_pdf(
    data: Dict[str, Any],
    reference: str,
    submitted_at: Optional[str] = None,
    estimated_wait_time: Optional[str] = None,
) -> PDFDocument:
    additional = None
    if data.get("specialRequirements"):
        additional = section(
            "Additional Information",
            full_width("Special Requirements or Notes", data.get("specialRequirements")),
        )

    wait = None
    if estimated_wait_time:
        wait = InfoBox(title="Estimated Wait Time", text=estimated_wait_time)

    return _document("Waitlist Registration", reference, submitted_at, [
        section(
            "Parent/Guardian Information",
            field("Full Name", data.get("fullName")),
            field("Phone Number", data.get("phoneNumber")),
            field("Email Address", data.get("email")),
        ),
        section(
            "Child Information",
            field("Child's Name", data.get("childName")),
            field("Date of Birth", _date(data.get("childDOB"))),
            field("Gender", data.get("childGender")),
        ),
        section(
            "Attendance Preferences",
            field("Preferred Start Date", _date(data.get("preferredStartDate")) or "Flexible"),
            field("Days Required", data.get("daysRequired") or "Not specified"),
            field("Session Type", data.get("sessionType") or "Not specified"),
            field("Sibling at Nursery", data.get("siblingAtNursery") or "Not specified"),
        ),
        additional,
        wait,
        InfoBox(text="This registration was submitted electronically. You will be contacted when a "
                     "place becomes available. We prioritize siblings of current children and "
                     "full-time place requests."),
    ])
