# app/modules/admin/schemas.py
from pydantic import BaseModel, Field, validator
from typing import List, Optional
from datetime import datetime
from enum import Enum

from app.core.auth.schemas import UserRole, UserStatus, UserResponse

class HistoryEntity(str, Enum):
    """Entidades registradas no histórico"""
    PRODUTO = "produto"
    PRATELEIRA = "prateleira"
    ESTOQUE = "estoque"
    USER = "user"
    DISTRIBUIDOR = "distribuidor"
    ROMANEIO = "romaneio"

# ==================== GESTÃO DE USUÁRIOS ====================

class UserCreate(BaseModel):
    """Criar usuário"""
    email: str = Field(..., description="Email único do usuário")
    password: str = Field(..., min_length=6, description="Senha (mínimo 6 caracteres)")
    name: str = Field(..., min_length=2, description="Nome")
    role: UserRole = Field(UserRole.OPERADOR, description="Perfil do usuário")
    status: UserStatus = Field(UserStatus.ATIVO)

    @validator('email')
    def normalize_email(cls, v):
        return v.strip().lower()

class UserUpdate(BaseModel):
    """Atualizar usuário existente"""
    name: Optional[str] = Field(None, min_length=2)
    role: Optional[UserRole] = None
    status: Optional[UserStatus] = None

class UserListResponse(BaseModel):
    items: List[UserResponse]
    total: int

# ==================== HISTÓRICO ====================

class HistoryCreate(BaseModel):
    """Registro manual de histórico"""
    user_id: int = Field(..., description="Usuário que executou a ação")
    entity: HistoryEntity
    entity_id: int
    action: str = Field(..., min_length=1, max_length=255)
    quantity: Optional[int] = None

class HistoryResponse(BaseModel):
    id: int
    user_id: int
    entity: str
    entity_id: int
    action: str
    quantity: Optional[int] = None
    created_at: Optional[datetime] = None
    who: Optional[str] = Field(None, description="Nome do usuário")
    target: Optional[str] = Field(None, description="Nome da entidade afetada")

class HistoryListResponse(BaseModel):
    items: List[HistoryResponse]
    total: int
    page: int
    limit: int
