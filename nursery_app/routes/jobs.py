"""
Careers routes
Job applications from the careers page
"""
from datetime import datetime, timedelta

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status

from nursery_app.config.database import Collections
from nursery_app.config.settings import settings
from nursery_app.pdf.documents import job_application_pdf
from nursery_app.pdf.layout import render_pdf
from nursery_app.services.email_service import NotificationPair
from nursery_app.services.email_templates import admin_email, submitter_email
from nursery_app.services.pipeline import (
    FormPipeline,
    NotifyPolicy,
    SubmissionServices,
    read_json_body,
)
from nursery_app.utils.errors import ConflictError
from nursery_app.utils.helpers import format_timestamp, to_iso
from nursery_app.validation.validators import job_application_validator

router = APIRouter(prefix="/jobs", tags=["Careers"])

REAPPLY_WINDOW = timedelta(days=30)

NEXT_STEPS = [
    "Your application will be reviewed within 5-7 business days",
    "You will receive an email confirmation shortly",
    "Suitable candidates will be contacted for an interview",
    "Please have your original certificates ready for verification",
]


async def check_recent_application(db_ops, ctx):
    """Same email + position only once per 30 days"""
    since = datetime.utcnow() - REAPPLY_WINDOW
    existing = await db_ops.get_one(
        Collections.JOB_APPLICATIONS,
        {
            "emailAddress": ctx.record.emailAddress,
            "positionApplyingFor": ctx.record.positionApplyingFor,
            "createdAt": {"$gte": since},
        },
    )
    if existing:
        raise ConflictError(
            "You have already applied for this position in the last 30 days. "
            "Please wait before reapplying.",
            ["Duplicate application detected for this position"],
        )


def build_job_pdf(ctx) -> bytes:
    return render_pdf(
        job_application_pdf(ctx.document, ctx.reference, format_timestamp(ctx.document.get("createdAt")))
    )


def compose_job_emails(ctx) -> NotificationPair:
    application = ctx.record
    position = application.positionApplyingFor

    alert = None
    if application.criminalConvictions == "yes":
        alert = "Applicant has declared criminal convictions - see the attached application"
    elif application.rightToWorkUK == "no":
        alert = "Applicant has declared no right to work in the UK"

    admin = admin_email(
        to=settings.HR_EMAIL,
        subject=f"New Job Application - {position} - {ctx.reference}",
        form_type="Job Application",
        reference=ctx.reference,
        primary_name=application.fullName,
        details={
            "Position": position,
            "Email": application.emailAddress,
            "Phone": application.phoneNumber,
            "Right to Work UK": application.rightToWorkUK.upper(),
            "DBS Certificate": application.currentDBSCertificate.upper(),
            "Criminal Convictions": application.criminalConvictions.upper(),
        },
        alert=alert,
        pdf_attached=ctx.pdf is not None and settings.ATTACH_PDF_TO_ADMIN_EMAIL,
    )
    confirmation = submitter_email(
        to=application.emailAddress,
        subject=f"Application Received - {position} Position",
        recipient_name=application.fullName,
        form_type="Job Application",
        reference=ctx.reference,
        message=f"Thank you for applying for the {position} position at {settings.NURSERY_NAME}. "
                "We have received your application and our team will review it carefully.",
        next_steps=NEXT_STEPS,
    )
    return NotificationPair(admin=admin, submitter=confirmation)


job_application_pipeline = FormPipeline(
    submission_type="job_application",
    collection=Collections.JOB_APPLICATIONS,
    validator=job_application_validator,
    status="submitted",
    reference_prefix="APP",
    reference_field="applicationReference",
    conflict_checks=[check_recent_application],
    notify_policy=NotifyPolicy.BEST_EFFORT,
    compose_emails=compose_job_emails,
    build_pdf=build_job_pdf,
    server_error={
        "message": "An internal server error occurred while processing your application. "
                   "Please try again later.",
        "errors": ["Server error - please contact HR if this persists"],
    },
    success_message=lambda ctx: (
        f"Thank you {ctx.record.fullName}! Your application for {ctx.record.positionApplyingFor} "
        "has been successfully submitted. We will review your application and contact you "
        "within 5-7 business days."
    ),
    build_response=lambda ctx: {
        "applicationId": ctx.inserted_id,
        "applicationReference": ctx.reference,
        "position": ctx.record.positionApplyingFor,
        "applicantName": ctx.record.fullName,
        "submittedAt": to_iso(ctx.document["createdAt"]),
        "status": "submitted",
        "nextSteps": NEXT_STEPS,
    },
)


@router.post("/apply", status_code=status.HTTP_201_CREATED)
async def apply_for_job(
    request: Request,
    background_tasks: BackgroundTasks,
    services: SubmissionServices = Depends(),
):
    """Submit a job application"""
    data = await read_json_body(request)
    return await job_application_pipeline.submit(
        data, services, background_tasks, request.headers.get("user-agent")
    )
