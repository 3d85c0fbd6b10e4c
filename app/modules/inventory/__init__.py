# app/modules/inventory/__init__.py

"""
Módulo Inventory - Estoque por prateleira e distribuidor

- Consulta com busca, filtro de estoque baixo/zerado e paginação
- Entradas e retiradas (retirada nunca deixa o saldo negativo)
- Importação via CSV

Arquitetura:
- router.py: Endpoints FastAPI
- service.py: Lógica de negócio
- repository.py: Acesso a dados
- schemas.py: Modelos Pydantic de request/response
"""

from .router import router as inventory_router
from .service import InventoryService
from .repository import InventoryRepository

__all__ = [
    "inventory_router",
    "InventoryService",
    "InventoryRepository"
]
