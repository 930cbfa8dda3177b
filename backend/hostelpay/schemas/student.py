from datetime import date, datetime
from typing import Literal, Optional

from pydantic import Field, model_validator

from hostelpay.schemas.base import CamelModel

FeeStatus = Literal["pending", "paid"]
PaymentMode = Literal["upi", "cash"]
UpdatedBy = Literal["student", "admin"]

MOBILE_PATTERN = r"^\d{10}$"


class Student(CamelModel):
    id: str
    name: str
    mobile: str = Field(..., pattern=MOBILE_PATTERN)
    room: str
    joining_date: date
    fee_status: FeeStatus = "pending"
    payment_mode: Optional[PaymentMode] = None
    updated_by: Optional[UpdatedBy] = None
    last_updated: datetime
    # "YYYY-MM" of the monthly reset pass that last reset this student
    reset_period: Optional[str] = None

    @model_validator(mode="after")
    def clear_mode_when_pending(self):
        if self.fee_status == "pending":
            self.payment_mode = None
        return self


class StudentCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    mobile: str = Field(..., pattern=MOBILE_PATTERN, description="10-digit mobile number")
    room: str = Field(..., min_length=1, max_length=20)
    joining_date: date
    fee_status: FeeStatus = "pending"
    payment_mode: Optional[PaymentMode] = None

    @model_validator(mode="after")
    def clear_mode_when_pending(self):
        if self.fee_status == "pending":
            self.payment_mode = None
        return self


class StudentUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    mobile: Optional[str] = Field(None, pattern=MOBILE_PATTERN)
    room: Optional[str] = Field(None, min_length=1, max_length=20)
    joining_date: Optional[date] = None


class FeeStatusUpdate(CamelModel):
    fee_status: FeeStatus
    payment_mode: Optional[PaymentMode] = None


class PortalVerifyRequest(CamelModel):
    mobile: str = Field(..., pattern=MOBILE_PATTERN)


class PaymentClaim(CamelModel):
    payment_mode: Optional[PaymentMode] = None
