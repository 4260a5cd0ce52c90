"""
Email rendering
Jinja2 templates under nursery_app/templates/email. HTML templates are
autoescaped so submitted text can never inject markup; the plain-text
variants are rendered as-is.
"""
from pathlib import Path
from typing import Dict, List, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from nursery_app.config.settings import settings
from nursery_app.services.email_service import EmailMessage
from nursery_app.utils.helpers import format_timestamp

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "email"

env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(enabled_extensions=("html",), default=False),
    trim_blocks=True,
    lstrip_blocks=True,
)

NURSERY = {
    "name": settings.NURSERY_NAME,
    "address": settings.NURSERY_ADDRESS,
    "landline": settings.NURSERY_LANDLINE,
    "mobile": settings.NURSERY_MOBILE,
    "email": settings.NURSERY_EMAIL,
    "website": settings.NURSERY_WEBSITE,
}


def _render(name: str, **context) -> str:
    return env.get_template(name).render(nursery=NURSERY, **context).strip()


def admin_email(
    to: str,
    subject: str,
    form_type: str,
    reference: str,
    primary_name: str,
    details: Optional[Dict[str, str]] = None,
    alert: Optional[str] = None,
    pdf_attached: bool = False,
) -> EmailMessage:
    """Notification to the nursery team"""
    context = dict(
        form_type=form_type,
        reference=reference,
        primary_name=primary_name,
        submitted_at=format_timestamp(),
        details={label: value for label, value in (details or {}).items() if value not in (None, "")},
        alert=alert,
        pdf_attached=pdf_attached,
    )
    return EmailMessage(
        to=to,
        subject=subject,
        html=_render("admin_notification.html", **context),
        text=_render("admin_notification.txt", **context),
    )


def submitter_email(
    to: str,
    subject: str,
    recipient_name: str,
    form_type: str,
    reference: str,
    next_steps: List[str],
    subject_name: Optional[str] = None,
    message: Optional[str] = None,
    details: Optional[Dict[str, str]] = None,
    reminder: Optional[str] = None,
) -> EmailMessage:
    """Confirmation to the parent or applicant"""
    context = dict(
        recipient_name=recipient_name,
        form_type=form_type,
        reference=reference,
        next_steps=next_steps,
        subject_name=subject_name,
        message=message,
        details={label: value for label, value in (details or {}).items() if value not in (None, "")},
        reminder=reminder,
    )
    return EmailMessage(
        to=to,
        subject=subject,
        html=_render("submitter_confirmation.html", **context),
        text=_render("submitter_confirmation.txt", **context),
    )
