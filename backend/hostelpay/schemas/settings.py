from datetime import datetime
from typing import Optional

from pydantic import Field

from hostelpay.schemas.base import CamelModel


class HostelSettings(CamelModel):
    id: str
    monthly_fee: float = Field(..., ge=0)
    upi_id: str
    hostel_name: str
    enable_pay_now: bool = True
    last_monthly_reset: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SettingsUpdate(CamelModel):
    monthly_fee: Optional[float] = Field(None, ge=100)
    upi_id: Optional[str] = Field(None, min_length=3, max_length=100)
    hostel_name: Optional[str] = Field(None, min_length=1, max_length=100)
    enable_pay_now: Optional[bool] = None
