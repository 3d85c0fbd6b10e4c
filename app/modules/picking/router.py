# app/modules/picking/router.py
from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from app.config.database import get_db
from app.config.settings import settings
from app.core.auth.dependencies import get_current_user
from app.shared.database.models import User
from .service import PickingService
from .schemas import *

router = APIRouter(prefix="/picking", tags=["Romaneio - Separação"])

# ==================== ROMANEIOS ====================

@router.get("", response_model=PickListListResponse)
async def list_pick_lists(
    status: Optional[str] = Query(None, description="Um ou mais status separados por vírgula"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.picking_page_size, ge=1, le=200),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Listar romaneios, mais recentes primeiro

    Ex.: `?status=pendente,em_andamento`
    """
    service = PickingService(db)
    return service.list_pick_lists(status, page, limit)

@router.post("", response_model=PickListDetail)
async def create_pick_list(
    data: PickListCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    service = PickingService(db)
    return service.create_pick_list(data, current_user)

@router.get("/{pick_list_id}", response_model=PickListDetail)
async def get_pick_list(
    pick_list_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Romaneio com as linhas bipadas (produto, SKU, código de barras, unidades por caixa, prateleira)"""
    service = PickingService(db)
    return service.get_pick_list(pick_list_id)

@router.patch("/{pick_list_id}/status", response_model=PickListDetail)
async def update_pick_list_status(
    pick_list_id: int,
    update: PickListStatusUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    service = PickingService(db)
    return service.update_status(pick_list_id, update, current_user)

@router.delete("/{pick_list_id}", response_model=PickListOperationResponse)
async def delete_pick_list(
    pick_list_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    service = PickingService(db)
    return service.delete_pick_list(pick_list_id, current_user)

# ==================== ITENS ====================

@router.post("/{pick_list_id}/items", response_model=PickListDetail)
async def add_pick_item(
    pick_list_id: int,
    payload: PickItemPayload,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Gravar uma linha diretamente, sem recalcular a alocação"""
    service = PickingService(db)
    return service.add_item(pick_list_id, payload)

@router.patch("/{pick_list_id}/items", response_model=PickListDetail)
async def update_pick_item(
    pick_list_id: int,
    payload: PickItemPayload,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    service = PickingService(db)
    return service.update_item(pick_list_id, payload)

@router.delete("/{pick_list_id}/items", response_model=PickListDetail)
async def delete_pick_item(
    pick_list_id: int,
    key: PickItemKey = Body(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    service = PickingService(db)
    return service.delete_item(pick_list_id, key)

# ==================== BIPAGEM ====================

@router.post("/{pick_list_id}/scan", response_model=ScanResponse)
async def scan_barcode(
    pick_list_id: int,
    request: ScanRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Bipar um código de barras

    - Mesmo produto e prateleira: soma uma caixa na linha
    - Caso contrário cria a linha com 1 caixa
    - Primeira bipagem de um romaneio pendente o coloca em andamento
    - Retorna as linhas e a alocação recalculada
    """
    service = PickingService(db)
    return await service.scan(pick_list_id, request)

@router.put("/{pick_list_id}/items/quantity", response_model=PickingSessionResponse)
async def set_pick_item_quantity(
    pick_list_id: int,
    update: QuantityUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Ajustar caixas de uma linha (mínimo 1) e recalcular"""
    service = PickingService(db)
    return await service.set_quantity(pick_list_id, update)

@router.delete("/{pick_list_id}/items/{product_id}/{shelf_id}", response_model=PickingSessionResponse)
async def remove_pick_item(
    pick_list_id: int,
    product_id: int,
    shelf_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    service = PickingService(db)
    return await service.remove_item(pick_list_id, product_id, shelf_id)

# ==================== ROTA E FINALIZAÇÃO ====================

@router.get("/{pick_list_id}/route", response_model=PickingSessionResponse)
async def get_pick_route(
    pick_list_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Alocação por produto, faltas e rota de separação

    Rota: corredores A, B, C, D; A e C em ordem crescente de posição,
    B e D em ordem decrescente (serpentina).
    """
    service = PickingService(db)
    return await service.get_route(pick_list_id)

@router.post("/{pick_list_id}/finalize", response_model=FinalizeResponse)
async def finalize_pick_list(
    pick_list_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Finalizar romaneio

    Retira do estoque cada alocação e marca o romaneio como concluído.
    Retiradas sem distribuidor ou rejeitadas pelo estoque são contadas
    em `skipped_count` / `failed_count` sem impedir a conclusão.
    """
    service = PickingService(db)
    return await service.finalize(pick_list_id, current_user)
