"""
Enrolment paperwork models
Only the fields the service reads are declared; everything else the parent
filled in is kept as submitted.
"""
from typing import Optional

from nursery_app.models.submission import SubmissionRecord


class ChildForm(SubmissionRecord):
    childFullName: str
    parentEmail: Optional[str] = None


class AboutMeForm(ChildForm):
    parentName: str


class RegistrationForm(ChildForm):
    parent1Name: str
    parent1Email: Optional[str] = None


class ConsentForm(ChildForm):
    parentName: str


class MedicalForm(ChildForm):
    parentName: str
    hasMedicalConditions: str
    hasAllergies: str
    onLongTermMedication: str


class FundingDeclaration(ChildForm):
    parentFullName: str


class ChangeOfDetails(ChildForm):
    parentName: str
