from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import List

from schemas.auth import SUser




class SAdminEventItem(BaseModel):
    id: int
    title: str
    date: datetime
    status: str
    organization_id: int

    model_config = ConfigDict(from_attributes=True)


class SAdminMetrics(BaseModel):
    total_users: int
    total_volunteers: int
    total_organizations: int
    total_admins: int
    total_events: int
    total_applications: int
    pending_applications: int
    latest_users: List[SUser]
    latest_events: List[SAdminEventItem]

    model_config = ConfigDict(from_attributes=True)
