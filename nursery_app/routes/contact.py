"""
Contact routes
General enquiries from the website contact form
"""
from datetime import datetime, timedelta

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
from nursery_app.utils.errors import RateLimited
from nursery_app.utils.helpers import to_iso
from nursery_app.validation.validators import contact_validator

router = APIRouter(prefix="/contact", tags=["Contact"])

RESUBMIT_WINDOW = timedelta(hours=24)


async def check_recent_inquiry(db_ops, ctx):
    """One enquiry per phone number per 24 hours"""
    since = datetime.utcnow() - RESUBMIT_WINDOW
    recent = await db_ops.get_one(
        Collections.CONTACT_INQUIRIES,
        {"phoneNumber": ctx.record.phoneNumber, "createdAt": {"$gte": since}},
    )
    if recent:
        raise RateLimited(
            "You have already submitted an inquiry in the last 24 hours. "
            "Please wait before submitting another.",
            ["Duplicate submission detected - please wait 24 hours between inquiries"],
        )


def compose_contact_emails(ctx) -> NotificationPair:
    inquiry = ctx.record
    return NotificationPair(
        admin=admin_email(
            to=settings.ADMIN_EMAIL,
            subject=f"New Contact Inquiry - {ctx.reference}",
            form_type="Contact Inquiry",
            reference=ctx.reference,
            primary_name=inquiry.fullName,
            details={"Phone": inquiry.phoneNumber, "Message": inquiry.message},
            alert="Please respond within 24 hours",
        )
    )


contact_pipeline = FormPipeline(
    submission_type="contact",
    collection=Collections.CONTACT_INQUIRIES,
    validator=contact_validator,
    status="new",
    reference_prefix="INQ",
    reference_field="referenceNumber",
    reference_suffix=False,
    conflict_checks=[check_recent_inquiry],
    notify_policy=NotifyPolicy.BEST_EFFORT,
    compose_emails=compose_contact_emails,
    success_message=lambda ctx: "Thank you for your inquiry! We have received your message "
                                "and will get back to you within 24 hours.",
    build_response=lambda ctx: {
        "inquiryId": ctx.inserted_id,
        "referenceNumber": ctx.reference,
        "submittedAt": to_iso(ctx.document["createdAt"]),
    },
)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_contact_inquiry(
    request: Request,
    background_tasks: BackgroundTasks,
    services: SubmissionServices = Depends(),
):
    """Submit a general enquiry"""
    data = await read_json_body(request)
    return await contact_pipeline.submit(
        data, services, background_tasks, request.headers.get("user-agent")
    )
