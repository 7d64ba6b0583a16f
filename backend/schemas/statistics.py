from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import List

from schemas.application import SApplicationWithVolunteer
from schemas.event import SEvent




class SVolunteerStatistics(BaseModel):
    events_attended: int = Field(description="Eventos aprovados já realizados ou concluídos")
    events_completed: int = Field(description="Eventos aprovados concluídos")
    total_volunteer_hours: float = Field(description="Horas de voluntariado em eventos realizados")
    participation_rate: float = Field(ge=0, le=1, description="Eventos frequentados / total de candidaturas")
    total_applications: int = Field(description="Total de candidaturas")

    model_config = ConfigDict(from_attributes=True)


class SStatusCounts(BaseModel):
    pending: int = 0
    approved: int = 0
    rejected: int = 0
    cancelled: int = 0

    model_config = ConfigDict(from_attributes=True)


class SEventApplicationStats(SStatusCounts):
    event_id: int
    title: str
    date: datetime
    status: str
    volunteers_needed: int
    volunteers_registered: int


class SOrganizationStatistics(BaseModel):
    total_events: int
    open_events: int
    approved_volunteers: int
    applications: SStatusCounts
    events: List[SEventApplicationStats]

    model_config = ConfigDict(from_attributes=True)


class SOrganizationDashboard(BaseModel):
    statistics: SOrganizationStatistics
    upcoming_events: List[SEvent]
    pending_applications: List[SApplicationWithVolunteer]
