from datetime import datetime
from typing import Literal, Optional

from hostelpay.schemas.base import CamelModel

NotificationType = Literal["payment_claimed", "payment_received", "student_action", "system_alert"]
Priority = Literal["low", "medium", "high"]


class Notification(CamelModel):
    id: str
    type: NotificationType
    title: str
    message: str
    student_id: Optional[str] = None
    student_name: Optional[str] = None
    amount: Optional[float] = None
    payment_method: Optional[str] = None
    timestamp: datetime
    is_read: bool = False
    priority: Priority = "medium"
