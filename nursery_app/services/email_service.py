"""
Postmark email service
Sends transactional email through the Postmark HTTP API and dispatches the
admin + submitter notification pair for a submission.
"""
import base64
import logging
from typing import List, Optional

import httpx
from pydantic import BaseModel, Field

from nursery_app.config.settings import settings

logger = logging.getLogger(__name__)

NOT_CONFIGURED = "Email service not configured"


class EmailAttachment(BaseModel):
    name: str
    content: bytes
    content_type: str = "application/pdf"


class EmailMessage(BaseModel):
    to: str
    subject: str
    html: str
    text: str
    attachments: List[EmailAttachment] = Field(default_factory=list)


class SendResult(BaseModel):
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


class PostmarkClient:
    """Thin async client for ``POST /email``.

    ``transport`` lets tests plug in an ``httpx.MockTransport``.
    """

    def __init__(
        self,
        server_token: str,
        from_email: str,
        api_url: str = "https://api.postmarkapp.com/email",
        timeout: float = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.server_token = server_token
        self.from_email = from_email
        self.api_url = api_url
        self.timeout = timeout
        self.transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.server_token)

    def _payload(self, message: EmailMessage) -> dict:
        payload = {
            "From": self.from_email,
            "To": message.to,
            "Subject": message.subject,
            "HtmlBody": message.html,
            "TextBody": message.text,
            "MessageStream": "outbound",
        }
        if message.attachments:
            payload["Attachments"] = [
                {
                    "Name": attachment.name,
                    "Content": base64.b64encode(attachment.content).decode("ascii"),
                    "ContentType": attachment.content_type,
                }
                for attachment in message.attachments
            ]
        return payload

    async def send(self, message: EmailMessage) -> SendResult:
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "X-Postmark-Server-Token": self.server_token,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.post(self.api_url, json=self._payload(message), headers=headers)
        except httpx.HTTPError as exc:
            logger.error("❌ Postmark request failed for %s: %s", message.to, exc)
            return SendResult(success=False, error=str(exc) or exc.__class__.__name__)

        try:
            body = resp.json()
        except ValueError:
            body = {}

        if resp.is_success:
            return SendResult(success=True, message_id=body.get("MessageID"))

        error = body.get("Message") or "Unknown error"
        logger.error("❌ Postmark rejected email to %s (%s): %s", message.to, resp.status_code, error)
        return SendResult(success=False, error=error)


def get_email_client() -> PostmarkClient:
    """FastAPI dependency - a client built from settings"""
    return PostmarkClient(
        server_token=settings.POSTMARK_SERVER_TOKEN,
        from_email=settings.FROM_EMAIL,
        api_url=settings.POSTMARK_API_URL,
        timeout=settings.EMAIL_TIMEOUT_SECONDS,
    )


class NotificationPair(BaseModel):
    admin: EmailMessage
    submitter: Optional[EmailMessage] = None


class NotificationResult(BaseModel):
    success: bool
    error: Optional[str] = None
    admin_sent: bool = False
    submitter_sent: bool = False


class Notifier:
    """Sends the admin notification, then the submitter confirmation.

    An admin failure is only logged. A submitter failure marks the whole
    notification as failed, since that is the email the caller reports on.
    """

    def __init__(self, client: PostmarkClient):
        self.client = client

    async def dispatch(
        self,
        pair: NotificationPair,
        not_configured_error: str = NOT_CONFIGURED,
        failure_prefix: str = "",
    ) -> NotificationResult:
        if not self.client.configured:
            logger.warning("⚠️ POSTMARK_SERVER_TOKEN is not set - skipping '%s'", pair.admin.subject)
            return NotificationResult(success=False, error=not_configured_error)

        admin = await self.client.send(pair.admin)
        if admin.success:
            logger.info("📧 Admin notification sent: %s", pair.admin.subject)
        else:
            logger.error("❌ Admin notification failed: %s", admin.error)

        if pair.submitter is None:
            return NotificationResult(success=True, admin_sent=admin.success)

        submitter = await self.client.send(pair.submitter)
        if not submitter.success:
            return NotificationResult(
                success=False,
                error=f"{failure_prefix}{submitter.error}",
                admin_sent=admin.success,
            )

        logger.info("📧 Confirmation sent to %s", pair.submitter.to)
        return NotificationResult(success=True, admin_sent=admin.success, submitter_sent=True)
