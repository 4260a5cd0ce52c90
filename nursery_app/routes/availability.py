"""
Availability routes
"Is there a space?" requests; the team calls back within a day
"""
from fastapi import APIRouter, BackgroundTasks, Depends, Request, status

from nursery_app.config.database import Collections
from nursery_app.config.settings import settings
from nursery_app.services.email_service import NotificationPair
from nursery_app.services.email_templates import admin_email
from nursery_app.services.pipeline import (
    FormPipeline,
    NotifyPolicy,
    SubmissionServices,
    read_json_body,
)
from nursery_app.utils.errors import ConflictError
from nursery_app.utils.helpers import to_iso
from nursery_app.validation.validators import availability_validator

router = APIRouter(prefix="/availability", tags=["Availability"])


async def check_no_open_request(db_ops, ctx):
    if await db_ops.get_one(Collections.AVAILABILITY_REQUESTS, {"phoneNumber": ctx.record.phoneNumber}):
        raise ConflictError(
            "A request with this phone number already exists",
            ["Phone number already registered for availability check"],
        )


def compose_availability_emails(ctx) -> NotificationPair:
    request = ctx.record
    return NotificationPair(
        admin=admin_email(
            to=settings.ADMIN_EMAIL,
            subject="New Availability Request - Nursery App",
            form_type="Availability Request",
            reference=ctx.reference,
            primary_name=request.fullName,
            details={"Phone": request.phoneNumber, "Children Details": request.childrenDetails},
            alert="Please contact this family within 24 hours",
        )
    )


availability_pipeline = FormPipeline(
    submission_type="availability_check",
    collection=Collections.AVAILABILITY_REQUESTS,
    validator=availability_validator,
    status="pending",
    reference_prefix="AVAIL",
    conflict_checks=[check_no_open_request],
    notify_policy=NotifyPolicy.BEST_EFFORT,
    compose_emails=compose_availability_emails,
    success_message=lambda ctx: "Your availability request has been submitted successfully! "
                                "We will contact you within 24 hours.",
    build_response=lambda ctx: {
        "requestId": ctx.inserted_id,
        "reference": ctx.reference,
        "submittedAt": to_iso(ctx.document["createdAt"]),
    },
)


@router.post("/check", status_code=status.HTTP_201_CREATED)
async def create_availability_request(
    request: Request,
    background_tasks: BackgroundTasks,
    services: SubmissionServices = Depends(),
):
    """Ask whether a place is available"""
    data = await read_json_body(request)
    return await availability_pipeline.submit(
        data, services, background_tasks, request.headers.get("user-agent")
    )
