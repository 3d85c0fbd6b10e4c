# app/modules/inventory/schemas.py
from pydantic import BaseModel, Field
from typing import List, Optional
from enum import Enum

class StockSearchField(str, Enum):
    """Campos aceitos na busca de estoque"""
    PRODUCT_NAME = "produto.nome"
    PRODUCT_SKU = "produto.SKU"
    PRODUCT_BARCODE = "produto.codBarras"
    PRODUCT_ID = "produto_id"
    SHELF_ID = "prateleira_id"

class StockFilter(str, Enum):
    LOW = "baixo"       # quantidade <= estoque baixo do produto
    EMPTY = "zerado"    # quantidade = 0

class StockMovementType(str, Enum):
    ADD = "adicionar"
    REMOVE = "retirar"

# ==================== CONSULTA ====================

class StockProductInfo(BaseModel):
    id: int
    name: str
    sku: Optional[str] = None
    barcode: Optional[str] = None
    low_stock_threshold: int = 0
    units_per_box: int = 1

class StockEntryResponse(BaseModel):
    """Linha de estoque com produto, prateleira e distribuidor"""
    id: int
    product_id: int
    shelf_id: int
    distributor_id: int
    quantity: int
    product: StockProductInfo
    shelf_name: str
    distributor_name: Optional[str] = None
    low_stock: bool = False

class StockListResponse(BaseModel):
    items: List[StockEntryResponse]
    total: int
    page: int
    limit: int

# ==================== MOVIMENTAÇÃO ====================

class StockCreate(BaseModel):
    """Entrada de estoque: soma na partição existente ou cria uma nova"""
    product_id: int = Field(..., description="Produto")
    shelf_id: int = Field(..., description="Prateleira")
    distributor_id: int = Field(..., description="Distribuidor")
    quantity: int = Field(..., gt=0, description="Quantidade em unidades")

class StockMovement(BaseModel):
    """Adicionar ou retirar unidades de uma partição de estoque"""
    product_id: int
    shelf_id: int
    distributor_id: int
    movement_type: StockMovementType = Field(..., description="adicionar ou retirar")
    quantity: int = Field(..., gt=0)

class StockEntryUpdate(BaseModel):
    """Troca produto/prateleira/distribuidor de uma linha de estoque"""
    product_id: Optional[int] = None
    shelf_id: Optional[int] = None
    distributor_id: Optional[int] = None

class StockOperationResponse(BaseModel):
    success: bool = True
    message: str
    entry_id: Optional[int] = None
    quantity: Optional[int] = None

class CsvImportResponse(BaseModel):
    success: bool = True
    message: str
    imported: int
    skipped: int
