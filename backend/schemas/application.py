from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime
from typing import Literal, Optional, List

from utils.dates import as_utc




class SAttachment(BaseModel):
    attachment_path: Optional[str] = Field(None, description="Caminho do anexo no armazenamento")
    attachment_name: Optional[str] = Field(None, description="Nome original do ficheiro")
    attachment_mime_type: Optional[str] = Field(None, description="Tipo MIME do anexo")
    attachment_size_bytes: Optional[int] = Field(None, ge=0, description="Tamanho do anexo em bytes")


class SApplicationCreate(SAttachment):
    event_id: int = Field(description="ID do evento")
    message: Optional[str] = Field(None, description="Mensagem para a organização")


class SApplicationAction(SAttachment):
    message: Optional[str] = Field(None, description="Nova mensagem (apenas ao candidatar-se novamente)")


class SApplication(SAttachment):
    id: int
    event_id: int
    volunteer_id: int
    status: str
    message: Optional[str] = None
    applied_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("applied_at", "updated_at", mode="after")
    @classmethod
    def _utc(cls, value):
        return as_utc(value)


class SApplicationWithEvent(SApplication):
    event_title: str = Field(description="Título do evento")
    event_date: datetime = Field(description="Data do evento")
    event_address: str = Field(description="Morada do evento")
    event_status: str = Field(description="Estado do evento")
    organization_name: Optional[str] = Field(None, description="Nome da organização")


class SApplicationWithVolunteer(SApplication):
    volunteer_name: str = Field(description="Nome do voluntário")
    volunteer_email: Optional[str] = Field(None, description="E-mail do voluntário")
    volunteer_avatar_url: Optional[str] = Field(None, description="Foto do voluntário")


class SApplicationListResponse(BaseModel):
    applications: List[SApplicationWithEvent]
    total_count: int
    page: int
    page_size: int
    total_pages: int


class SApplicationTransitionResult(BaseModel):
    application: SApplication
    notification_status: Literal["sent", "failed", "skipped"]
    notification_error: Optional[str] = None
