from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from datetime import date, datetime
from typing import Literal, Optional, List

from schemas.application import SApplication




class SCamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SManageApplicationRequest(SCamelModel):
    action: Literal["cancel", "approve", "reject", "reapply"]
    application_id: int
    actor_id: int
    message: Optional[str] = None
    attachment_path: Optional[str] = None
    attachment_name: Optional[str] = None
    attachment_mime_type: Optional[str] = None
    attachment_size_bytes: Optional[int] = Field(None, ge=0)


class SManageApplicationData(SCamelModel):
    application: SApplication
    notification_status: Literal["sent", "failed", "skipped"]
    notification_error: Optional[str] = None


class SManageApplicationResponse(SCamelModel):
    success: bool = True
    data: SManageApplicationData


class SProcessExpiredEventsRequest(SCamelModel):
    dry_run: bool = False


class SProcessExpiredEventsResponse(SCamelModel):
    success: bool = True
    completed_event_ids: List[int]
    skipped_event_ids: List[int]
    completed_count: int
    processed_at: datetime
    dry_run: bool = False


class SSendEventRemindersRequest(SCamelModel):
    dry_run: bool = False
    target_date: Optional[date] = None


class SReminderSample(SCamelModel):
    event_id: int
    event_title: str
    volunteer_email: str


class SSendEventRemindersResponse(SCamelModel):
    success: bool = True
    processed: int
    to_notify: int
    notifications_created: int
    emails_sent: int
    email_failures: int
    skipped: int
    window_start: datetime
    window_end: datetime
    dry_run: bool = False
    sample: List[SReminderSample] = Field(default_factory=list)


class SFunctionError(BaseModel):
    success: bool = False
    error: str
