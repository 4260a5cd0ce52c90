"""
Job application model
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from nursery_app.models.submission import SubmissionRecord


class DocumentsReceived(BaseModel):
    cv: bool = False
    coverLetter: bool = False
    certificates: bool = False
    references: bool = False


class JobApplication(SubmissionRecord):
    positionApplyingFor: str

    # Personal information
    fullName: str
    dateOfBirth: str
    nationalInsuranceNumber: str
    emailAddress: str
    phoneNumber: str
    fullHomeAddress: str

    # Work authorisation and background
    rightToWorkUK: str
    currentDBSCertificate: str
    dbsCertificateNumber: Optional[str] = None
    criminalConvictions: str
    criminalConvictionsDetails: Optional[str] = None

    # Qualifications & experience
    qualifications: str
    relevantTraining: Optional[str] = None
    employmentHistory: str
    employmentGaps: Optional[str] = None
    references: str
    whyWorkHere: str

    declaration: bool
    applicationDate: Optional[datetime] = None

    priority: str = "normal"
    source: str = "website_application"
    reviewedAt: Optional[datetime] = None
    reviewedBy: Optional[str] = None
    notes: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    interviewScheduled: bool = False
    documentsReceived: DocumentsReceived = Field(default_factory=DocumentsReceived)
