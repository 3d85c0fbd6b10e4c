# app/modules/admin/router.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from datetime import date

from app.config.database import get_db
from app.config.settings import settings
from app.core.auth.dependencies import require_roles
from app.shared.database.models import User
from .service import AdminService
from .schemas import *

router = APIRouter(prefix="/admin", tags=["Admin - Administrador"])

admin_only = require_roles([UserRole.ADMIN.value])

# ==================== USUÁRIOS ====================

@router.get("/users", response_model=UserListResponse)
async def list_users(
    current_user: User = Depends(admin_only),
    db: Session = Depends(get_db)
):
    """Listar usuários com último acesso"""
    service = AdminService(db)
    return service.list_users()

@router.post("/users", response_model=UserResponse)
async def create_user(
    user_data: UserCreate,
    current_user: User = Depends(admin_only),
    db: Session = Depends(get_db)
):
    """
    Criar usuário

    **Validações:**
    - Email único no sistema
    - Senha com no mínimo 6 caracteres
    - Perfil `admin` ou `operador`
    """
    service = AdminService(db)
    return service.create_user(user_data, current_user)

@router.patch("/users/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    update: UserUpdate,
    current_user: User = Depends(admin_only),
    db: Session = Depends(get_db)
):
    """Alterar nome, perfil ou status (ativo/inativo)"""
    service = AdminService(db)
    return service.update_user(user_id, update, current_user)

# ==================== HISTÓRICO ====================

@router.post("/historico", response_model=HistoryResponse)
async def record_history_entry(
    history_data: HistoryCreate,
    current_user: User = Depends(admin_only),
    db: Session = Depends(get_db)
):
    service = AdminService(db)
    return service.record(history_data)

@router.get("/historico", response_model=HistoryListResponse)
async def list_history(
    start_date: Optional[date] = Query(None, description="Dia (YYYY-MM-DD)"),
    user_id: Optional[int] = Query(None),
    entity: Optional[HistoryEntity] = Query(None),
    action: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.page_size_default, ge=1, le=500),
    current_user: User = Depends(admin_only),
    db: Session = Depends(get_db)
):
    """
    Histórico de ações, mais recente primeiro

    Cada linha traz `who` (nome do usuário) e `target` (nome da entidade;
    para estoque, `"<produto> - <prateleira>"`).
    """
    service = AdminService(db)
    return service.list_history(start_date, user_id, entity, action, page, limit)
