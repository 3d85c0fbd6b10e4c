# app/api/v1/auth.py
import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.config.settings import settings
from app.core.auth.dependencies import get_current_user
from app.core.auth.schemas import LoginRequest, TokenResponse, UserResponse
from app.core.auth.security import create_access_token, verify_password
from app.shared.database.models import User

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/login", response_model=TokenResponse)
async def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    """
    Login com email e senha

    Usuários inativos não recebem token.
    """
    user = db.query(User).filter(User.email == credentials.email.strip().lower()).first()
    if not user or not verify_password(credentials.password, user.password_hash):
        logger.warning(f"Tentativa de login inválida para {credentials.email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Email ou senha inválidos"
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Usuário está inativo. Contate o administrador."
        )

    user.last_sign_in_at = datetime.now()
    db.commit()
    db.refresh(user)

    token = create_access_token(user.id, user.role)
    return TokenResponse(
        access_token=token,
        expires_in=settings.access_token_expire_minutes * 60,
        user=UserResponse.from_orm(user)
    )

@router.post("/logout")
async def logout(current_user: User = Depends(get_current_user)):
    """Token é stateless: o cliente só descarta"""
    return {"success": True, "message": "Logout realizado"}

@router.get("/me", response_model=UserResponse)
async def me(current_user: User = Depends(get_current_user)):
    return UserResponse.from_orm(current_user)
