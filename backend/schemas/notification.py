from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import Optional, List




class SNotification(BaseModel):
    id: int
    user_id: int
    type: str
    title: str
    message: str
    status: Optional[str] = None
    link: Optional[str] = None
    is_read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SNotificationList(BaseModel):
    notifications: List[SNotification]
    unread_count: int
