from datetime import datetime
from typing import Optional

from hostelpay.schemas.base import CamelModel


class ResetResult(CamelModel):
    success: bool
    message: str
    students_reset: int
    failed: int = 0
    period: str


class ResetStatus(CamelModel):
    reset_needed: bool
    last_reset: Optional[datetime] = None
    current_date: datetime
    current_period: str
    collection_window_open: bool
