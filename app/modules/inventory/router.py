# app/modules/inventory/router.py
from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.orm import Session
from typing import Optional

from app.config.database import get_db
from app.config.settings import settings
from app.core.auth.dependencies import get_current_user
from app.shared.database.models import User
from .service import InventoryService
from .schemas import *

router = APIRouter(prefix="/estoque", tags=["Estoque"])

# ==================== CONSULTA ====================

@router.get("", response_model=StockListResponse)
async def list_stock(
    search: Optional[str] = Query(None, description="Texto ou id a buscar"),
    search_field: StockSearchField = Query(StockSearchField.PRODUCT_NAME, description="Campo da busca"),
    stock_filter: Optional[StockFilter] = Query(None, description="baixo ou zerado"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.page_size_default, ge=1, le=500),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Listar estoque por produto x prateleira x distribuidor

    **Busca:**
    - `produto.nome`, `produto.SKU`, `produto.codBarras`: contém (sem diferenciar maiúsculas)
    - `produto_id`, `prateleira_id`: igualdade (valor precisa ser numérico)
    """
    service = InventoryService(db)
    return service.list_stock(search, search_field, stock_filter, page, limit)

# ==================== MOVIMENTAÇÃO ====================

@router.post("", response_model=StockOperationResponse)
async def add_stock(
    stock_data: StockCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Entrada de estoque: soma na partição (produto, prateleira, distribuidor)
    existente ou cria uma nova
    """
    service = InventoryService(db)
    return service.add_stock(stock_data, current_user)

@router.patch("/movimentar", response_model=StockOperationResponse)
async def move_stock(
    movement: StockMovement,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Adicionar ou retirar unidades

    Retirada maior que o disponível é rejeitada, nunca truncada.
    """
    service = InventoryService(db)
    return service.move_stock(movement, current_user)

@router.patch("/{entry_id}", response_model=StockOperationResponse)
async def update_stock_entry(
    entry_id: int,
    update: StockEntryUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Trocar produto, prateleira ou distribuidor de uma linha de estoque"""
    service = InventoryService(db)
    return service.update_entry(entry_id, update, current_user)

@router.delete("/{entry_id}", response_model=StockOperationResponse)
async def delete_stock_entry(
    entry_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    service = InventoryService(db)
    return service.delete_entry(entry_id, current_user)

# ==================== IMPORTAÇÃO ====================

@router.post("/import-csv", response_model=CsvImportResponse)
async def import_stock_csv(
    file: UploadFile = File(..., description="CSV com colunas sku, distribuidor, quantidade"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Importar estoque de um CSV

    - Delimitador `;` se presente no arquivo, senão `,`
    - Cabeçalhos sem espaços e em minúsculas
    - SKU desconhecido: linha ignorada
    - Itens vão para a prateleira padrão de recebimento
    """
    service = InventoryService(db)
    return await service.import_csv(file, current_user)
