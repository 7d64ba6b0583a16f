from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime
from typing import Literal, Optional, List

from utils.dates import as_utc




class SEventBase(BaseModel):
    title: str = Field(
        min_length=1,
        description="Título do evento",
        examples=["Limpeza da praia de Matosinhos"],
    )
    description: str = Field(
        description="Descrição do evento",
        examples=["Recolha de lixo no areal com o apoio da junta de freguesia"],
    )
    category: str = Field(
        description="Categoria",
        examples=["Ambiente", "Educação", "Saúde"],
    )
    address: str = Field(
        description="Morada",
        examples=["Avenida General Norton de Matos, Matosinhos"],
    )
    lat: Optional[float] = Field(None, description="Latitude")
    lng: Optional[float] = Field(None, description="Longitude")
    date: datetime = Field(
        description="Data e hora de início",
        examples=["2024-03-15T10:00:00Z"],
    )
    duration: Optional[str] = Field(
        None,
        description="Duração em texto livre",
        examples=["2h30", "1:45", "90m"],
    )
    volunteers_needed: int = Field(0, ge=0, description="Vagas de voluntários")
    image_url: Optional[str] = Field(None, description="URL da imagem de capa")


class SEventCreate(SEventBase):
    pass


class SEventUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, description="Título do evento")
    description: Optional[str] = Field(None, description="Descrição do evento")
    category: Optional[str] = Field(None, description="Categoria")
    address: Optional[str] = Field(None, description="Morada")
    lat: Optional[float] = Field(None, description="Latitude")
    lng: Optional[float] = Field(None, description="Longitude")
    date: Optional[datetime] = Field(None, description="Data e hora de início")
    duration: Optional[str] = Field(None, description="Duração em texto livre")
    volunteers_needed: Optional[int] = Field(None, ge=0, description="Vagas de voluntários")
    image_url: Optional[str] = Field(None, description="URL da imagem de capa")
    status: Optional[Literal["open", "closed", "completed"]] = Field(None, description="Estado do evento")

    @field_validator(
        "title", "description", "category", "address", "date", "volunteers_needed", "status",
        mode="before"
    )
    @classmethod
    def _not_null(cls, value):
        # omit the field to keep it; these columns cannot be cleared
        if value is None:
            raise ValueError("Este campo não pode ser nulo")
        return value


class SEventRecap(BaseModel):
    post_event_summary: str = Field(min_length=1, description="Resumo do evento realizado")
    post_event_gallery_urls: List[str] = Field(default_factory=list, description="Fotografias do evento realizado")


class SEvent(SEventBase):
    id: int
    organization_id: int
    volunteers_registered: int
    status: str
    post_event_summary: Optional[str] = None
    post_event_gallery_urls: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("post_event_gallery_urls", mode="before")
    @classmethod
    def _gallery_or_empty(cls, value):
        return value or []

    @field_validator("date", "created_at", "updated_at", mode="after")
    @classmethod
    def _utc(cls, value):
        return as_utc(value)


class SOrganizationSummary(BaseModel):
    id: int
    name: str
    email: Optional[str] = None
    avatar_url: Optional[str] = None


class SEventWithOrganization(SEvent):
    organization: Optional[SOrganizationSummary] = None


class SEventListResponse(BaseModel):
    kind: Literal["plain", "paged"]
    events: List[SEventWithOrganization]
    total_count: Optional[int] = None
    page: Optional[int] = None
    page_size: Optional[int] = None
    total_pages: Optional[int] = None
