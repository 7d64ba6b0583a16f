from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Literal, Optional




class SUserAuth(BaseModel):
    auth_id: str = Field(min_length=1, description="ID do utilizador no fornecedor de identidade")
    name: str = Field(min_length=1, description="Nome exibido")
    email: Optional[str] = Field(None, description="E-mail de contacto")
    role: Literal["volunteer", "organization"] = Field("volunteer", description="Papel escolhido no registo; administradores não se registam")


class SUser(BaseModel):
    id: int
    auth_id: str
    name: str
    email: Optional[str] = None
    role: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SUserSession(BaseModel):
    session_token: str
    user: SUser
