from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List




class SUserProfile(BaseModel):
    id: int
    user_id: int
    avatar_url: Optional[str] = None
    phone: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    mission: Optional[str] = None
    vision: Optional[str] = None
    history: Optional[str] = None
    gallery_urls: List[str] = Field(default_factory=list)
    stats_events_held: int = 0
    stats_volunteers_impacted: int = 0
    stats_hours_contributed: int = 0

    model_config = ConfigDict(from_attributes=True)

    @field_validator("gallery_urls", mode="before")
    @classmethod
    def _gallery_or_empty(cls, value):
        return value or []


class SUserProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, description="Nome exibido")
    email: Optional[str] = Field(None, description="E-mail de contacto")
    avatar_url: Optional[str] = Field(None, description="URL da foto de perfil")
    phone: Optional[str] = Field(None, description="Telefone")
    bio: Optional[str] = Field(None, description="Sobre mim")
    location: Optional[str] = Field(None, description="Cidade / região")
    mission: Optional[str] = Field(None, description="Missão da organização")
    vision: Optional[str] = Field(None, description="Visão da organização")
    history: Optional[str] = Field(None, description="História da organização")
    gallery_urls: Optional[List[str]] = Field(None, description="Galeria de fotografias da organização")


class SUserWithProfile(BaseModel):
    id: int
    name: str
    email: Optional[str] = None
    role: str
    profile: Optional[SUserProfile] = None


class SPublicProfile(BaseModel):
    id: int
    name: str
    role: str
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    mission: Optional[str] = None
    vision: Optional[str] = None
    history: Optional[str] = None
    gallery_urls: List[str] = Field(default_factory=list)
    stats_events_held: int = 0
    stats_volunteers_impacted: int = 0
    stats_hours_contributed: int = 0
