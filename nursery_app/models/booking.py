"""
Booking models
Visit bookings, club day bookings and enrolment deposits
"""
from pydantic import BaseModel, Field
from typing import List, Literal, Optional, Union
from datetime import datetime

from nursery_app.models.submission import SubmissionRecord

VISIT_TIMES = ["9:00 AM", "10:00 AM", "11:00 AM", "2:00 PM", "3:00 PM", "4:00 PM"]
CLUB_TITLES = ["Breakfast Club", "After Hours Club"]
CLUB_DAY_PRICE = 8
MAX_CLUB_DAYS = 5


class DepositType(BaseModel):
    name: str
    amount: int = Field(..., gt=0, description="Amount in pounds")
    refundable: bool


DEPOSIT_TYPES = {
    "registration": DepositType(name="Registration Fee", amount=75, refundable=False),
    "security": DepositType(name="Security Deposit", amount=250, refundable=True),
}


class VisitBooking(SubmissionRecord):
    parentName: str
    childName: str
    childAge: Union[int, float]
    email: str
    phone: str
    # Midnight of the booked day so day queries and the unique indexes line up
    visitDate: datetime
    visitTime: str
    message: str = ""
    reminderSent: bool = False


class ClubBooking(SubmissionRecord):
    parentName: str
    parentEmail: str
    childName: str
    clubTitle: Literal["Breakfast Club", "After Hours Club"]
    selectedDates: List[str]
    clubPrice: Union[int, float]
    totalAmount: Union[int, float]
    paymentIntentId: Optional[str] = None
    paymentStatus: Optional[str] = None


class DepositPayment(SubmissionRecord):
    parentName: str
    parentEmail: str
    parentPhone: str
    childName: str
    preferredStartDate: str
    depositType: Literal["registration", "security"]
    depositName: str
    amount: int
    refundable: bool
    paymentIntentId: Optional[str] = None
    paymentStatus: Optional[str] = None
