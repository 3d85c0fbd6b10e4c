from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from enum import Enum

class UserRole(str, Enum):
    """Perfis de acesso"""
    ADMIN = "admin"
    OPERADOR = "operador"

class UserStatus(str, Enum):
    ATIVO = "ativo"
    INATIVO = "inativo"

class LoginRequest(BaseModel):
    email: str = Field(..., description="Email do usuário")
    password: str = Field(..., min_length=1, description="Senha")

class UserResponse(BaseModel):
    id: int
    email: str
    name: str
    role: str
    status: str
    created_at: Optional[datetime] = None
    last_sign_in_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse
