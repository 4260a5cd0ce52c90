"""
Enrolment form routes
Registration, All About Me, consent, medical, funding and change-of-details
paperwork. Each form is stored, rendered to PDF and sent to the office.
"""
from typing import Callable, Dict, List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status

from nursery_app.config.database import Collections
from nursery_app.config.settings import settings
from nursery_app.pdf import documents
from nursery_app.pdf.layout import PDFDocument, render_pdf
from nursery_app.services.email_service import NotificationPair
from nursery_app.services.email_templates import admin_email, submitter_email
from nursery_app.services.pipeline import (
    FormPipeline,
    NotifyPolicy,
    SubmissionServices,
    read_json_body,
)
from nursery_app.utils.helpers import format_long_date, format_timestamp, to_iso
from nursery_app.validation import validators

router = APIRouter(prefix="/forms", tags=["Enrolment Forms"])


class FormSpec:
    """Everything that differs between the enrolment forms"""

    def __init__(
        self,
        *,
        slug: str,
        title: str,
        submission_type: str,
        collection: str,
        status: str,
        prefix: str,
        validator,
        pdf: Callable[..., PDFDocument],
        parent_field: str,
        success_label: str,
        error_noun: str,
        admin_subject: Optional[str] = None,
        next_steps: Optional[List[str]] = None,
        extra_fields: Optional[Dict] = None,
        alert: Optional[Callable[[dict], Optional[str]]] = None,
        reminder: Optional[Callable[[dict], Optional[str]]] = None,
        response_extras: Optional[Callable[[dict], Dict]] = None,
    ):
        self.slug = slug
        self.title = title
        self.submission_type = submission_type
        self.collection = collection
        self.status = status
        self.prefix = prefix
        self.validator = validator
        self.pdf = pdf
        self.parent_field = parent_field
        self.success_label = success_label
        self.error_noun = error_noun
        self.admin_subject = admin_subject or f"New {title}"
        self.next_steps = next_steps or [
            "Our team will review your submission",
            "We will contact you if we need any further information",
        ]
        self.extra_fields = extra_fields or {}
        self.alert = alert
        self.reminder = reminder
        self.response_extras = response_extras

    @property
    def id_key(self) -> str:
        return f"{self.slug}Id"

    @property
    def reference_key(self) -> str:
        return f"{self.slug}Reference"


def _submitter_address(data: dict) -> Optional[str]:
    return data.get("parentEmail") or data.get("parent1Email")


def _medical_alert(data: dict) -> Optional[str]:
    if documents.has_medical_alerts(data):
        return "This child has medical conditions, allergies, or medications that staff must be aware of."
    return None


def _funding_reminder(data: dict) -> Optional[str]:
    if data.get("thirtyHourCode"):
        return ("You must reconfirm your 30-hour eligibility code every 3 months "
                "to avoid losing your extended entitlement.")
    return None


def _change_alert(data: dict) -> Optional[str]:
    return f"ACTION REQUIRED: Please update child records from {format_long_date(data.get('effectiveFrom'))}"


FORMS = [
    FormSpec(
        slug="application",
        title="Application",
        submission_type="application_registration",
        collection=Collections.APPLICATIONS,
        status="submitted",
        prefix="APP",
        validator=validators.registration_validator,
        pdf=documents.child_registration_pdf,
        parent_field="parent1Name",
        success_label="Application",
        error_noun="your application",
        next_steps=[
            "Our admissions team will review your application",
            "We will contact you to confirm availability and a start date",
            "A registration fee is payable to secure your child's place",
        ],
    ),
    FormSpec(
        slug="aboutMe",
        title="All About Me Form",
        submission_type="about_me",
        collection=Collections.ABOUT_ME_FORMS,
        status="completed",
        prefix="ABOUTME",
        validator=validators.about_me_validator,
        pdf=documents.about_me_pdf,
        parent_field="parentName",
        success_label="All About Me form",
        error_noun="your form",
        next_steps=[
            "Your child's key person will read this before their first session",
            "We will use it to plan a settling-in routine that suits your child",
        ],
    ),
    FormSpec(
        slug="consent",
        title="Consent Form",
        submission_type="consent_form",
        collection=Collections.CONSENT_FORMS,
        status="active",
        prefix="CONSENT",
        validator=validators.consent_validator,
        pdf=documents.consent_form_pdf,
        parent_field="parentName",
        success_label="Consent form",
        error_noun="your consent form",
        next_steps=[
            "Your consent preferences have been added to your child's record",
            "You can update them at any time by submitting a new consent form",
        ],
    ),
    FormSpec(
        slug="medical",
        title="Medical Form",
        submission_type="medical_form",
        collection=Collections.MEDICAL_FORMS,
        status="active",
        prefix="MED",
        validator=validators.medical_validator,
        pdf=documents.medical_form_pdf,
        parent_field="parentName",
        success_label="Medical form",
        error_noun="your medical form",
        alert=_medical_alert,
        next_steps=[
            "Relevant staff will be made aware of your child's medical needs",
            "Please hand any medication to staff in its original packaging",
        ],
    ),
    FormSpec(
        slug="funding",
        title="Funding Declaration",
        submission_type="funding_declaration",
        collection=Collections.FUNDING_DECLARATIONS,
        status="pending_verification",
        prefix="FUND",
        validator=validators.funding_validator,
        pdf=documents.funding_declaration_pdf,
        parent_field="parentFullName",
        success_label="Funding declaration",
        error_noun="your funding declaration",
        reminder=_funding_reminder,
        next_steps=[
            "Your declaration will be verified with the Local Authority",
            "You will be notified of the outcome within 5-7 business days",
        ],
    ),
    FormSpec(
        slug="change",
        title="Change of Details",
        submission_type="change_details",
        collection=Collections.CHANGE_DETAILS,
        status="pending",
        prefix="CHANGE",
        validator=validators.change_validator,
        pdf=documents.change_details_pdf,
        parent_field="parentName",
        success_label="Change of details",
        error_noun="your change request",
        admin_subject="Change of Details",
        extra_fields={"processedAt": None, "processedBy": None},
        alert=_change_alert,
        next_steps=[
            "Your changes will be processed within 24 hours",
            "All relevant staff will be notified of the updates",
            "You will receive confirmation once complete",
        ],
        response_extras=lambda data: {"effectiveFrom": data.get("effectiveFrom")},
    ),
]


def build_form_pipeline(spec: FormSpec) -> FormPipeline:
    def build_pdf(ctx) -> bytes:
        return render_pdf(spec.pdf(ctx.document, ctx.reference, format_timestamp(ctx.document.get("createdAt"))))

    def compose_emails(ctx) -> NotificationPair:
        data = ctx.document
        child = ctx.record.childFullName
        parent = data.get(spec.parent_field) or ""

        admin = admin_email(
            to=settings.ADMIN_EMAIL,
            subject=f"{spec.admin_subject} - {child} - {ctx.reference}",
            form_type=spec.title,
            reference=ctx.reference,
            primary_name=child,
            details={"Child": child, "Submitted by": parent, "Email": _submitter_address(data)},
            alert=spec.alert(data) if spec.alert else None,
            pdf_attached=ctx.pdf is not None and settings.ATTACH_PDF_TO_ADMIN_EMAIL,
        )

        confirmation = None
        address = _submitter_address(data)
        if address:
            confirmation = submitter_email(
                to=address,
                subject=f"{spec.title} Received - {child}",
                recipient_name=parent or "Parent/Carer",
                form_type=spec.title,
                reference=ctx.reference,
                subject_name=child,
                next_steps=spec.next_steps,
                reminder=spec.reminder(data) if spec.reminder else None,
            )
        return NotificationPair(admin=admin, submitter=confirmation)

    def build_response(ctx) -> dict:
        response = {
            spec.id_key: ctx.inserted_id,
            spec.reference_key: ctx.reference,
            "childName": ctx.record.childFullName,
            "submittedAt": to_iso(ctx.document["createdAt"]),
        }
        if spec.response_extras:
            response.update(spec.response_extras(ctx.document))
        return response

    return FormPipeline(
        submission_type=spec.submission_type,
        collection=spec.collection,
        validator=spec.validator,
        status=spec.status,
        reference_prefix=spec.prefix,
        reference_field=spec.reference_key,
        extra_fields=spec.extra_fields,
        notify_policy=NotifyPolicy.BEST_EFFORT,
        compose_emails=compose_emails,
        build_pdf=build_pdf,
        server_error={
            "message": f"An error occurred while processing {spec.error_noun}",
            "errors": ["Server error - please try again later"],
        },
        success_message=lambda ctx: f"{spec.success_label} submitted successfully for {ctx.record.childFullName}",
        build_response=build_response,
    )


FORM_PIPELINES = {spec.slug: build_form_pipeline(spec) for spec in FORMS}


def _register(path: str, slug: str):
    pipeline = FORM_PIPELINES[slug]

    async def submit_form(
        request: Request,
        background_tasks: BackgroundTasks,
        services: SubmissionServices = Depends(),
    ):
        data = await read_json_body(request)
        return await pipeline.submit(data, services, background_tasks, request.headers.get("user-agent"))

    submit_form.__name__ = f"submit_{slug}_form"
    router.add_api_route(
        path,
        submit_form,
        methods=["POST"],
        status_code=status.HTTP_201_CREATED,
        name=submit_form.__name__,
        summary=f"Submit the {pipeline.submission_type.replace('_', ' ')} form",
    )


_register("/application", "application")
_register("/aboutme", "aboutMe")
_register("/consent", "consent")
_register("/medical", "medical")
_register("/funding", "funding")
_register("/change", "change")
