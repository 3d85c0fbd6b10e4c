# app/modules/catalog/__init__.py

"""
Módulo Catalog - Cadastros de produtos, prateleiras e distribuidores

Arquitetura:
- router.py: Endpoints FastAPI
- service.py: Lógica de negócio e histórico
- repository.py: Acesso a dados
- schemas.py: Modelos Pydantic de request/response
"""

from .router import router as catalog_router
from .service import CatalogService
from .repository import CatalogRepository

__all__ = [
    "catalog_router",
    "CatalogService",
    "CatalogRepository"
]
