"""
Waitlist routes
Join the waiting list, and look up a family's current position by phone
"""
import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status

from nursery_app.config.database import Collections
from nursery_app.config.settings import settings
from nursery_app.database.db_operations import DBOperations, get_db_ops
from nursery_app.pdf.documents import waitlist_pdf
from nursery_app.pdf.layout import render_pdf
from nursery_app.services.email_service import NotificationPair
from nursery_app.services.email_templates import admin_email, submitter_email
from nursery_app.services.pipeline import (
    FormPipeline,
    NotifyPolicy,
    SubmissionServices,
    read_json_body,
)
from nursery_app.utils.errors import ConflictError, NotFound, ServerError, SubmissionError, ValidationFailed
from nursery_app.utils.helpers import format_timestamp, to_iso
from nursery_app.validation.validators import waitlist_validator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/waitlist", tags=["Waitlist"])


def estimated_wait_time(position: int) -> str:
    if position <= 5:
        return "1-2 weeks"
    if position <= 15:
        return "1-2 months"
    return "2-4 months"


async def check_phone_not_listed(db_ops, ctx):
    if await db_ops.get_one(Collections.WAITLIST, {"phoneNumber": ctx.record.phoneNumber}):
        raise ConflictError(
            "This phone number is already on our waitlist",
            ["Phone number already registered on waitlist"],
        )


async def assign_position(db_ops, ctx):
    """Next place in the queue of active entries"""
    position = await db_ops.count(Collections.WAITLIST, {"status": "active"}) + 1
    ctx.record.position = position
    ctx.extras["position"] = position
    ctx.extras["estimatedWaitTime"] = estimated_wait_time(position)


def build_waitlist_pdf(ctx) -> bytes:
    document = waitlist_pdf(
        ctx.document,
        ctx.reference,
        format_timestamp(ctx.document.get("createdAt")),
        estimated_wait_time=ctx.extras["estimatedWaitTime"],
    )
    return render_pdf(document)


def compose_waitlist_emails(ctx) -> NotificationPair:
    entry = ctx.record
    position = ctx.extras["position"]
    wait = ctx.extras["estimatedWaitTime"]

    admin = admin_email(
        to=settings.ADMIN_EMAIL,
        subject=f"New Waitlist Registration - Position #{position}",
        form_type="Waitlist Registration",
        reference=ctx.reference,
        primary_name=entry.fullName,
        details={
            "Phone": entry.phoneNumber,
            "Email": entry.email,
            "Child": entry.childName,
            "Children Details": entry.childrenDetails,
            "Position": f"#{position}",
            "Estimated Wait": wait,
        },
        pdf_attached=ctx.pdf is not None and settings.ATTACH_PDF_TO_ADMIN_EMAIL,
    )

    confirmation = None
    if entry.email:
        confirmation = submitter_email(
            to=entry.email,
            subject=f"Waitlist Registration Confirmed - {settings.NURSERY_NAME}",
            recipient_name=entry.fullName,
            form_type="Waitlist Registration",
            reference=ctx.reference,
            subject_name=entry.childName,
            details={"Position": f"#{position}", "Estimated Wait": wait},
            next_steps=[
                "We will contact you as soon as a place becomes available",
                "Please let us know if your contact details or requirements change",
            ],
        )
    return NotificationPair(admin=admin, submitter=confirmation)


waitlist_pipeline = FormPipeline(
    submission_type="waitlist",
    collection=Collections.WAITLIST,
    validator=waitlist_validator,
    status="active",
    reference_prefix="WAIT",
    conflict_checks=[check_phone_not_listed],
    prepare=assign_position,
    notify_policy=NotifyPolicy.BEST_EFFORT,
    compose_emails=compose_waitlist_emails,
    build_pdf=build_waitlist_pdf,
    success_message=lambda ctx: (
        "You've been successfully added to our waitlist! "
        f"You are currently at position {ctx.extras['position']}. "
        "We'll contact you as soon as a spot becomes available."
    ),
    build_response=lambda ctx: {
        "waitlistId": ctx.inserted_id,
        "reference": ctx.reference,
        "position": ctx.extras["position"],
        "estimatedWaitTime": ctx.extras["estimatedWaitTime"],
        "submittedAt": to_iso(ctx.document["createdAt"]),
    },
)


@router.post("/join", status_code=status.HTTP_201_CREATED)
async def join_waitlist(
    request: Request,
    background_tasks: BackgroundTasks,
    services: SubmissionServices = Depends(),
):
    """Add a family to the waiting list"""
    data = await read_json_body(request)
    return await waitlist_pipeline.submit(
        data, services, background_tasks, request.headers.get("user-agent")
    )


@router.get("/join")
async def get_waitlist_status(
    phone: Optional[str] = None,
    db_ops: DBOperations = Depends(get_db_ops),
):
    """Current position of an active entry, looked up by phone number"""
    if not phone or not phone.strip():
        raise ValidationFailed(["Phone number parameter is missing"], "Phone number is required")

    try:
        entry = await db_ops.get_one(
            Collections.WAITLIST, {"phoneNumber": phone.strip(), "status": "active"}
        )
        if not entry:
            raise NotFound(
                "No active waitlist entry found for this phone number",
                ["Phone number not found on waitlist"],
            )

        ahead = await db_ops.count(
            Collections.WAITLIST,
            {"createdAt": {"$lt": entry["createdAt"]}, "status": "active"},
        )
    except SubmissionError:
        raise
    except Exception:
        logger.exception("❌ Error retrieving waitlist status")
        raise ServerError()

    position = ahead + 1
    return {
        "success": True,
        "message": "Waitlist status retrieved successfully",
        "data": {
            "position": position,
            "estimatedWaitTime": estimated_wait_time(position),
            "joinedAt": to_iso(entry["createdAt"]),
            "status": entry["status"],
        },
    }
