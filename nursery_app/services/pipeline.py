"""
Submission pipeline
validate -> conflict checks -> payment -> persist -> notify -> respond

Every submission endpoint is a ``FormPipeline`` configured with its own
validator, collection, checks, emails and PDF. Handlers only read the body
and hand it over.
"""
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

from fastapi import BackgroundTasks, Depends, Request
from pymongo.errors import DuplicateKeyError

from nursery_app.config.settings import settings
from nursery_app.database.db_operations import DBOperations, get_db_ops
from nursery_app.models.submission import SubmissionRecord
from nursery_app.services.email_service import (
    NOT_CONFIGURED,
    EmailAttachment,
    NotificationPair,
    NotificationResult,
    Notifier,
    PostmarkClient,
    get_email_client,
)
from nursery_app.services.payment_service import (
    PaymentGateway,
    PaymentIntent,
    PaymentRequest,
    get_payment_gateway,
)
from nursery_app.utils.errors import ServerError, SubmissionError, ValidationFailed
from nursery_app.utils.helpers import generate_reference

logger = logging.getLogger(__name__)


class NotifyPolicy(str, Enum):
    BEST_EFFORT = "best_effort"  # after the response, failures logged
    AWAITED = "awaited"  # before the response, result reported to the caller


class SubmissionServices:
    """Per-request collaborators, resolved through FastAPI dependencies"""

    def __init__(
        self,
        db_ops: DBOperations = Depends(get_db_ops),
        email_client: PostmarkClient = Depends(get_email_client),
        payment_gateway: PaymentGateway = Depends(get_payment_gateway),
    ):
        self.db_ops = db_ops
        self.email_client = email_client
        self.payment_gateway = payment_gateway


class SubmissionContext:
    """Everything known about one submission as it moves through the pipeline"""

    def __init__(self, data: Dict[str, Any], record: SubmissionRecord, user_agent: str):
        self.data = data
        self.record = record
        self.user_agent = user_agent
        self.reference: Optional[str] = None
        self.document: Dict[str, Any] = {}
        self.payment: Optional[PaymentIntent] = None
        self.notification: Optional[NotificationResult] = None
        self.pdf: Optional[bytes] = None
        # Values computed by hooks, e.g. waitlist position
        self.extras: Dict[str, Any] = {}

    @property
    def inserted_id(self) -> str:
        return str(self.document.get("_id"))


ConflictCheck = Callable[[DBOperations, SubmissionContext], Awaitable[None]]


async def read_json_body(request: Request) -> Any:
    """Request body as parsed JSON; malformed bodies become an empty payload"""
    try:
        return await request.json()
    except ValueError:
        return {}


class FormPipeline:
    def __init__(
        self,
        *,
        submission_type: str,
        collection: str,
        validator,
        status: str,
        reference_prefix: str,
        build_response: Callable[[SubmissionContext], Dict[str, Any]],
        success_message: Callable[[SubmissionContext], str],
        reference_field: str = "reference",
        reference_suffix: bool = True,
        conflict_checks: Optional[List[ConflictCheck]] = None,
        prepare: Optional[Callable[[DBOperations, SubmissionContext], Awaitable[None]]] = None,
        payment: Optional[Callable[[SubmissionContext], PaymentRequest]] = None,
        notify_policy: NotifyPolicy = NotifyPolicy.BEST_EFFORT,
        compose_emails: Optional[Callable[[SubmissionContext], NotificationPair]] = None,
        build_pdf: Optional[Callable[[SubmissionContext], bytes]] = None,
        extra_fields: Optional[Dict[str, Any]] = None,
        on_duplicate_key: Optional[Callable[[DuplicateKeyError], SubmissionError]] = None,
        not_configured_error: str = NOT_CONFIGURED,
        email_failure_prefix: str = "",
        server_error: Optional[Dict[str, Any]] = None,
    ):
        self.submission_type = submission_type
        self.collection = collection
        self.validator = validator
        self.status = status
        self.reference_prefix = reference_prefix
        self.reference_field = reference_field
        self.reference_suffix = reference_suffix
        self.build_response = build_response
        self.success_message = success_message
        self.conflict_checks = conflict_checks or []
        self.prepare = prepare
        self.payment = payment
        self.notify_policy = notify_policy
        self.compose_emails = compose_emails
        self.build_pdf = build_pdf
        self.extra_fields = extra_fields or {}
        self.on_duplicate_key = on_duplicate_key
        self.not_configured_error = not_configured_error
        self.email_failure_prefix = email_failure_prefix
        self.server_error = server_error or {}

    async def submit(
        self,
        data: Any,
        services: SubmissionServices,
        background_tasks: BackgroundTasks,
        user_agent: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Run the whole pipeline and return the success envelope"""
        result, record = self.validator(data)
        if not result.is_valid:
            raise ValidationFailed(result.errors, self.validator.message)

        ctx = SubmissionContext(data, record, user_agent or "unknown")
        try:
            await self._process(ctx, services, background_tasks)
        except SubmissionError:
            raise
        except Exception:
            logger.exception("❌ Error processing %s submission", self.submission_type)
            raise ServerError(**self.server_error)

        return {
            "success": True,
            "message": self.success_message(ctx),
            "data": self.build_response(ctx),
        }

    async def _process(self, ctx: SubmissionContext, services: SubmissionServices, background_tasks: BackgroundTasks):
        for check in self.conflict_checks:
            await check(services.db_ops, ctx)

        if self.prepare:
            await self.prepare(services.db_ops, ctx)

        if self.payment:
            ctx.payment = await services.payment_gateway.create_intent(self.payment(ctx))
            ctx.record.paymentIntentId = ctx.payment.id
            ctx.record.paymentStatus = ctx.payment.status

        ctx.reference = generate_reference(self.reference_prefix, self.reference_suffix)
        document = ctx.record.to_document()
        document.update(
            {
                "type": self.submission_type,
                "status": self.status,
                self.reference_field: ctx.reference,
                "userAgent": ctx.user_agent,
            }
        )
        document.update({key: _fresh(value) for key, value in self.extra_fields.items()})

        try:
            ctx.document = await services.db_ops.create(self.collection, document)
        except DuplicateKeyError as exc:
            if self.on_duplicate_key is None:
                raise
            logger.info("Duplicate key on %s insert: %s", self.collection, exc)
            raise self.on_duplicate_key(exc) from exc

        logger.info("✅ %s saved as %s", self.submission_type, ctx.reference)

        if self.compose_emails is None:
            return

        notifier = Notifier(services.email_client)
        if self.notify_policy == NotifyPolicy.AWAITED:
            try:
                ctx.notification = await self.notify(ctx, notifier)
            except Exception as exc:
                logger.exception("❌ Notification for %s failed", ctx.reference)
                ctx.notification = NotificationResult(success=False, error=str(exc))
        else:
            background_tasks.add_task(self.notify_quietly, ctx, notifier)

    async def notify(self, ctx: SubmissionContext, notifier: Notifier) -> NotificationResult:
        ctx.pdf = self.render_pdf(ctx)
        pair = self.compose_emails(ctx)
        if ctx.pdf is not None and settings.ATTACH_PDF_TO_ADMIN_EMAIL:
            pair.admin.attachments.append(
                EmailAttachment(name=f"{self.submission_type}-{ctx.reference}.pdf", content=ctx.pdf)
            )
        return await notifier.dispatch(
            pair,
            not_configured_error=self.not_configured_error,
            failure_prefix=self.email_failure_prefix,
        )

    async def notify_quietly(self, ctx: SubmissionContext, notifier: Notifier):
        """Background variant - the submission is already saved, so only log"""
        try:
            result = await self.notify(ctx, notifier)
        except Exception:
            logger.exception("❌ Notification for %s failed", ctx.reference)
            return
        if not result.success:
            logger.warning("⚠️ Notification for %s not delivered: %s", ctx.reference, result.error)

    def render_pdf(self, ctx: SubmissionContext) -> Optional[bytes]:
        if self.build_pdf is None:
            return None
        try:
            return self.build_pdf(ctx)
        except Exception:
            logger.exception("❌ PDF generation failed for %s", ctx.reference)
            return None


def _fresh(value: Any) -> Any:
    """Copy mutable defaults so documents never share lists or dicts"""
    if isinstance(value, dict):
        return {key: _fresh(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_fresh(item) for item in value]
    return value

