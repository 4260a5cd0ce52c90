"""
Enquiry models - contact inquiries, waitlist entries and availability requests
"""
from pydantic import Field
from typing import List, Optional
from datetime import datetime

from nursery_app.models.submission import SubmissionRecord


class ContactInquiry(SubmissionRecord):
    fullName: str
    phoneNumber: str
    message: str
    priority: str = "normal"
    source: str = "website_contact_form"
    respondedAt: Optional[datetime] = None
    assignedTo: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    notes: List[str] = Field(default_factory=list)


class WaitlistEntry(SubmissionRecord):
    fullName: str
    phoneNumber: str
    childrenDetails: str = ""
    position: int = 0
    priority: str = "normal"
    contactedAt: Optional[datetime] = None
    notes: str = ""

    # Optional registration details, printed on the PDF copy
    email: Optional[str] = None
    childName: Optional[str] = None
    childDOB: Optional[str] = None
    childGender: Optional[str] = None
    preferredStartDate: Optional[str] = None
    daysRequired: Optional[str] = None
    sessionType: Optional[str] = None
    siblingAtNursery: Optional[str] = None
    specialRequirements: Optional[str] = None


class AvailabilityRequest(SubmissionRecord):
    fullName: str
    phoneNumber: str
    childrenDetails: str = ""
