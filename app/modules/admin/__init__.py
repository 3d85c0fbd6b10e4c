# app/modules/admin/__init__.py

"""
Módulo Admin - Usuários e histórico

Arquitetura:
- router.py: Endpoints FastAPI (somente perfil admin)
- service.py: Lógica de negócio
- repository.py: Acesso a dados
- schemas.py: Modelos Pydantic de request/response
"""

from .router import router as admin_router
from .service import AdminService
from .repository import AdminRepository

__all__ = [
    "admin_router",
    "AdminService",
    "AdminRepository"
]
