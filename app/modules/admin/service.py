# app/modules/admin/service.py
import logging
from datetime import date
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.core.auth.security import hash_password
from app.shared.database.models import User
from app.shared.services.history import record_history
from .repository import AdminRepository
from .schemas import *

logger = logging.getLogger(__name__)

class AdminService:
    """
    Serviço administrativo: usuários e histórico de ações
    """

    def __init__(self, db: Session):
        self.db = db
        self.repository = AdminRepository(db)

    # ==================== GESTÃO DE USUÁRIOS ====================

    def list_users(self) -> UserListResponse:
        users = self.repository.list_users()
        return UserListResponse(
            items=[UserResponse.from_orm(u) for u in users],
            total=len(users)
        )

    def create_user(self, user_data: UserCreate, admin: User) -> UserResponse:
        """
        Criar usuário

        - Email único no sistema
        - A senha é gravada apenas como hash bcrypt
        """
        if self.repository.get_user_by_email(user_data.email):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email já está em uso"
            )

        user = self.repository.create_user({
            "email": user_data.email,
            "name": user_data.name.strip(),
            "password_hash": hash_password(user_data.password),
            "role": user_data.role.value,
            "status": user_data.status.value
        })
        record_history(self.db, admin.id, "user", user.id, "Cadastrou Usuário")

        logger.info(f"Usuário {user.email} criado por {admin.email}")
        return UserResponse.from_orm(user)

    def update_user(self, user_id: int, update: UserUpdate, admin: User) -> UserResponse:
        user = self.repository.get_user(user_id)
        if not user:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Usuário não encontrado")

        update_data = {}
        if update.name is not None:
            update_data["name"] = update.name.strip()
        if update.role is not None:
            update_data["role"] = update.role.value
        if update.status is not None:
            update_data["status"] = update.status.value

        if not update_data:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Requisição inválida")

        user = self.repository.update_user(user, update_data)
        record_history(self.db, admin.id, "user", user.id, "Editou Usuário")
        return UserResponse.from_orm(user)

    # ==================== HISTÓRICO ====================

    def record(self, history_data: HistoryCreate) -> HistoryResponse:
        if not self.repository.get_user(history_data.user_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Usuário não encontrado")

        entry = record_history(
            self.db,
            user_id=history_data.user_id,
            entity=history_data.entity.value,
            entity_id=history_data.entity_id,
            action=history_data.action,
            quantity=history_data.quantity
        )
        return self._build_history_response(entry)

    def list_history(
        self,
        start_date: Optional[date],
        user_id: Optional[int],
        entity: Optional[HistoryEntity],
        action: Optional[str],
        page: int,
        limit: int
    ) -> HistoryListResponse:
        entries, total = self.repository.list_history(
            start_date=start_date,
            user_id=user_id,
            entity=entity.value if entity else None,
            action=(action or "").strip() or None,
            page=page,
            limit=limit
        )
        return HistoryListResponse(
            items=[self._build_history_response(e) for e in entries],
            total=total,
            page=page,
            limit=limit
        )

    def _build_history_response(self, entry) -> HistoryResponse:
        return HistoryResponse(
            id=entry.id,
            user_id=entry.user_id,
            entity=entry.entity,
            entity_id=entry.entity_id,
            action=entry.action,
            quantity=entry.quantity,
            created_at=entry.created_at,
            who=entry.user.name if entry.user else None,
            target=self.repository.entity_display_name(entry.entity, entry.entity_id)
        )
