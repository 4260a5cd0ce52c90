"""
Deposit payment routes
Registration fee and refundable security deposit, paid through Stripe
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
from nursery_app.validation.validators import deposit_payment_validator

router = APIRouter(prefix="/deposit-payment", tags=["Deposit Payments"])


def deposit_payment(ctx) -> PaymentRequest:
    deposit = ctx.record
    return PaymentRequest(
        amount=deposit.amount,
        receipt_email=deposit.parentEmail,
        description=f"{deposit.depositName} for {deposit.childName} - {settings.NURSERY_NAME}",
        metadata={
            "parentName": deposit.parentName,
            "parentEmail": deposit.parentEmail,
            "parentPhone": deposit.parentPhone,
            "childName": deposit.childName,
            "preferredStartDate": deposit.preferredStartDate,
            "depositType": deposit.depositType,
            "depositName": deposit.depositName,
            "refundable": "true" if deposit.refundable else "false",
        },
    )


def compose_deposit_emails(ctx) -> NotificationPair:
    deposit = ctx.record
    amount = f"£{deposit.amount}"
    start_date = format_long_date(deposit.preferredStartDate)
    refund_note = "Refundable" if deposit.refundable else "Non-refundable"

    admin = admin_email(
        to=settings.ADMIN_EMAIL,
        subject=f"New {deposit.depositName} Payment - {deposit.childName}",
        form_type=f"{deposit.depositName} Payment",
        reference=ctx.reference,
        primary_name=deposit.parentName,
        details={
            "Email": deposit.parentEmail,
            "Phone": deposit.parentPhone,
            "Child": deposit.childName,
            "Preferred Start Date": start_date,
            "Amount": f"{amount} ({refund_note})",
            "Payment Intent": deposit.paymentIntentId,
            "Payment Status": deposit.paymentStatus,
        },
    )

    next_steps = [
        "Complete your card payment to confirm your place",
        "A Stripe receipt will be sent to this email address",
        "Our team will contact you to arrange settling-in sessions",
    ]
    if deposit.refundable:
        next_steps.append("Your security deposit is refundable in line with our terms and conditions")

    confirmation = submitter_email(
        to=deposit.parentEmail,
        subject=f"{deposit.depositName} Payment Confirmation - {settings.NURSERY_NAME}",
        recipient_name=deposit.parentName,
        form_type=f"{deposit.depositName} Payment",
        reference=ctx.reference,
        subject_name=deposit.childName,
        details={
            "Payment": deposit.depositName,
            "Amount": f"{amount} ({refund_note})",
            "Preferred Start Date": start_date,
        },
        next_steps=next_steps,
    )
    return NotificationPair(admin=admin, submitter=confirmation)


deposit_payment_pipeline = FormPipeline(
    submission_type="deposit_payment",
    collection=Collections.DEPOSIT_PAYMENTS,
    validator=deposit_payment_validator,
    status="pending_payment",
    reference_prefix="DEP",
    payment=deposit_payment,
    notify_policy=NotifyPolicy.AWAITED,
    compose_emails=compose_deposit_emails,
    success_message=lambda ctx: "Deposit payment created successfully",
    build_response=lambda ctx: {
        "bookingId": ctx.inserted_id,
        "reference": ctx.reference,
        "clientSecret": ctx.payment.client_secret,
        "paymentIntentId": ctx.payment.id,
        "amount": ctx.record.amount,
        "depositType": ctx.record.depositType,
        "depositName": ctx.record.depositName,
        "emailSent": bool(ctx.notification and ctx.notification.success),
    },
)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_deposit_payment(
    request: Request,
    background_tasks: BackgroundTasks,
    services: SubmissionServices = Depends(),
):
    """Create a deposit PaymentIntent for an enrolment"""
    data = await read_json_body(request)
    return await deposit_payment_pipeline.submit(
        data, services, background_tasks, request.headers.get("user-agent")
    )
