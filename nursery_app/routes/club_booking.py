"""
Club booking routes
Breakfast / After Hours club days, paid up front through Stripe
"""
from fastapi import APIRouter, BackgroundTasks, Depends, Request, status

from nursery_app.config.database import Collections
from nursery_app.config.settings import settings
from nursery_app.services.email_service import NotificationPair
from nursery_app.services.email_templates import admin_email, submitter_email
from nursery_app.services.payment_service import PaymentRequest
from nursery_app.services.pipeline import (
    FormPipeline,
    NotifyPolicy,
    SubmissionServices,
    read_json_body,
)
from nursery_app.utils.helpers import format_long_date
from nursery_app.validation.validators import club_booking_validator

router = APIRouter(prefix="/club-booking", tags=["Club Bookings"])


def club_payment(ctx) -> PaymentRequest:
    booking = ctx.record
    return PaymentRequest(
        amount=booking.totalAmount,
        receipt_email=booking.parentEmail,
        description=f"{booking.clubTitle} booking for {booking.childName}",
        metadata={
            "parentName": booking.parentName,
            "parentEmail": booking.parentEmail,
            "childName": booking.childName,
            "clubTitle": booking.clubTitle,
            "numberOfDays": str(len(booking.selectedDates)),
        },
    )


def compose_club_emails(ctx) -> NotificationPair:
    booking = ctx.record
    dates = ", ".join(format_long_date(day) for day in booking.selectedDates)
    total = f"£{booking.totalAmount:.2f}"

    admin = admin_email(
        to=settings.ADMIN_EMAIL,
        subject=f"New Club Booking - {booking.clubTitle}",
        form_type="Club Booking",
        reference=ctx.reference,
        primary_name=booking.parentName,
        details={
            "Email": booking.parentEmail,
            "Child": booking.childName,
            "Club": booking.clubTitle,
            "Dates": dates,
            "Number of Days": str(len(booking.selectedDates)),
            "Total": total,
            "Payment Intent": booking.paymentIntentId,
            "Payment Status": booking.paymentStatus,
        },
    )
    confirmation = submitter_email(
        to=booking.parentEmail,
        subject=f"{booking.clubTitle} Booking Confirmation",
        recipient_name=booking.parentName,
        form_type="Club Booking",
        reference=ctx.reference,
        subject_name=booking.childName,
        message=f"Thank you for booking {booking.clubTitle} for {booking.childName}. "
                "Your booking will be confirmed once payment has been completed.",
        details={"Club": booking.clubTitle, "Dates": dates, "Total": total},
        next_steps=[
            "Complete your card payment to secure the booked days",
            "A Stripe receipt will be sent to this email address",
            "Please bring your child to the club room at the usual time",
        ],
    )
    return NotificationPair(admin=admin, submitter=confirmation)


def club_response(ctx) -> dict:
    data = {
        "bookingId": ctx.inserted_id,
        "reference": ctx.reference,
        "clientSecret": ctx.payment.client_secret,
        "paymentIntentId": ctx.payment.id,
        "emailSent": bool(ctx.notification and ctx.notification.success),
    }
    if ctx.notification and ctx.notification.error:
        data["emailError"] = ctx.notification.error
    return data


club_booking_pipeline = FormPipeline(
    submission_type="club_booking",
    collection=Collections.CLUB_BOOKINGS,
    validator=club_booking_validator,
    status="pending_payment",
    reference_prefix="CLUB",
    payment=club_payment,
    notify_policy=NotifyPolicy.AWAITED,
    compose_emails=compose_club_emails,
    not_configured_error="Postmark server token not configured - check POSTMARK_SERVER_TOKEN env variable",
    email_failure_prefix="Failed to send confirmation email: ",
    success_message=lambda ctx: "Booking created successfully",
    build_response=club_response,
)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_club_booking(
    request: Request,
    background_tasks: BackgroundTasks,
    services: SubmissionServices = Depends(),
):
    """Book club days and create the Stripe PaymentIntent"""
    data = await read_json_body(request)
    return await club_booking_pipeline.submit(
        data, services, background_tasks, request.headers.get("user-agent")
    )
