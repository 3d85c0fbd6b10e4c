# app/modules/picking/__init__.py

"""
Módulo Picking - Romaneios (listas de separação)

- Bipagem de códigos de barras por romaneio
- Alocação do estoque por prateleira e rota em serpentina
- Finalização com baixa do estoque

Arquitetura:
- routing.py: Ordem das prateleiras e preferências de alocação
- allocation.py: Motor de alocação (puro, sem I/O)
- session.py: Sessão de bipagem sobre as portas de estoque e persistência
- router.py / service.py / repository.py / schemas.py: camada HTTP
"""

from .router import router as picking_router
from .service import PickingService
from .repository import PickingRepository

__all__ = [
    "picking_router",
    "PickingService",
    "PickingRepository"
]
