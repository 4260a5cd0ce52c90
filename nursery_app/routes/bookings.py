"""
Visit booking routes
Parents book a nursery tour for a weekday slot
"""
from datetime import timedelta

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from pymongo.errors import DuplicateKeyError

from nursery_app.config.database import Collections
from nursery_app.config.settings import settings
from nursery_app.services.email_service import NotificationPair
from nursery_app.services.email_templates import admin_email, submitter_email
from nursery_app.services.pipeline import (
    FormPipeline,
    NotifyPolicy,
    SubmissionServices,
    read_json_body,
)
from nursery_app.utils.errors import ConflictError
from nursery_app.utils.helpers import format_long_date, to_iso
from nursery_app.validation.validators import visit_booking_validator

router = APIRouter(prefix="/bookings", tags=["Visit Bookings"])


def duplicate_booking() -> ConflictError:
    return ConflictError(
        "You already have a booking for this date",
        ["A booking with this email already exists for the selected date"],
    )


def slot_taken() -> ConflictError:
    return ConflictError(
        "This time slot is already booked",
        ["The selected time slot is no longer available"],
    )


async def check_visit_conflicts(db_ops, ctx):
    """One booking per email per day, one family per slot"""
    booking = ctx.record
    same_day = {"$gte": booking.visitDate, "$lt": booking.visitDate + timedelta(days=1)}

    if await db_ops.get_one(Collections.VISIT_BOOKINGS, {"email": booking.email, "visitDate": same_day}):
        raise duplicate_booking()

    if await db_ops.get_one(
        Collections.VISIT_BOOKINGS, {"visitDate": same_day, "visitTime": booking.visitTime}
    ):
        raise slot_taken()


def conflict_from_index(exc: DuplicateKeyError) -> ConflictError:
    """Map a lost insert race back to the matching 409"""
    details = exc.details or {}
    if "unique_visit_slot" in str(exc) or "visitTime" in (details.get("keyPattern") or {}):
        return slot_taken()
    return duplicate_booking()


def compose_visit_emails(ctx) -> NotificationPair:
    booking = ctx.record
    visit_date = format_long_date(ctx.data["visitDate"])
    age = booking.childAge if booking.childAge != int(booking.childAge) else int(booking.childAge)

    admin = admin_email(
        to=settings.ADMIN_EMAIL,
        subject="New Visit Booking - Nursery App",
        form_type="Visit Booking",
        reference=ctx.reference,
        primary_name=booking.parentName,
        details={
            "Child": f"{booking.childName} ({age} years old)",
            "Email": booking.email,
            "Phone": booking.phone,
            "Visit Date": visit_date,
            "Visit Time": booking.visitTime,
            "Message": booking.message,
        },
        alert="Action Required: Please confirm this visit booking",
    )
    confirmation = submitter_email(
        to=booking.email,
        subject="Visit Booking Confirmation - Thank You!",
        recipient_name=booking.parentName,
        form_type="Visit Booking",
        reference=ctx.reference,
        message=f"Thank you for booking a visit to {settings.NURSERY_NAME}. "
                f"We can't wait to meet you and {booking.childName}.",
        details={"Date": visit_date, "Time": booking.visitTime},
        next_steps=[
            "Tour of our facilities and classrooms",
            "Meet our qualified staff members",
            "Discussion of our educational programs",
            "Review of enrollment process and fees",
            "Opportunity to ask all your questions",
            f"{booking.childName} is welcome to explore and play!",
        ],
        reminder="If you need to reschedule or cancel, please give us at least 24 hours notice. "
                 "We'll also send you a reminder call the day before your visit.",
    )
    return NotificationPair(admin=admin, submitter=confirmation)


visit_booking_pipeline = FormPipeline(
    submission_type="visit_booking",
    collection=Collections.VISIT_BOOKINGS,
    validator=visit_booking_validator,
    status="scheduled",
    reference_prefix="VISIT",
    conflict_checks=[check_visit_conflicts],
    on_duplicate_key=conflict_from_index,
    notify_policy=NotifyPolicy.BEST_EFFORT,
    compose_emails=compose_visit_emails,
    success_message=lambda ctx: "Your visit has been booked successfully! "
                                "We'll send you a confirmation email shortly.",
    build_response=lambda ctx: {
        "bookingId": ctx.inserted_id,
        "reference": ctx.reference,
        "visitDate": ctx.data["visitDate"],
        "visitTime": ctx.record.visitTime,
        "submittedAt": to_iso(ctx.document["createdAt"]),
    },
)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_visit_booking(
    request: Request,
    background_tasks: BackgroundTasks,
    services: SubmissionServices = Depends(),
):
    """Book a nursery visit"""
    data = await read_json_body(request)
    return await visit_booking_pipeline.submit(
        data, services, background_tasks, request.headers.get("user-agent")
    )
