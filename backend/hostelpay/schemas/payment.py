from datetime import datetime
from typing import Any, Dict, Literal, Optional

from pydantic import Field

from hostelpay.schemas.base import CamelModel

PaymentStatus = Literal["pending", "processing", "completed", "failed"]


class PaymentTracking(CamelModel):
    id: str
    student_id: str
    amount: float
    status: PaymentStatus = "pending"
    payment_method: str
    initiated_at: datetime
    completed_at: Optional[datetime] = None
    transaction_id: Optional[str] = None
    upi_ref: Optional[str] = None
    failure_reason: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class PaymentInitiate(CamelModel):
    student_id: str
    amount: Optional[float] = Field(None, gt=0)
    payment_method: Literal["upi"] = "upi"
