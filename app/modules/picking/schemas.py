# app/modules/picking/schemas.py
from pydantic import BaseModel, Field, validator
from typing import Dict, List, Optional
from datetime import datetime

from .session import PickListStatus

# ==================== ROMANEIO ====================

class PickListCreate(BaseModel):
    number: str = Field(..., min_length=1, max_length=100, description="Número do romaneio")
    description: Optional[str] = Field("", description="Descrição livre")

    @validator('number')
    def validate_number(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('Número do romaneio é obrigatório')
        return v

class PickListStatusUpdate(BaseModel):
    status: PickListStatus

class PickListItemResponse(BaseModel):
    id: int
    product_id: int
    shelf_id: int
    quantity: int = Field(..., description="Quantidade em caixas")
    product_name: str
    product_sku: Optional[str] = None
    product_barcode: Optional[str] = None
    units_per_box: int = 1
    shelf_name: str

class PickListSummary(BaseModel):
    id: int
    number: str
    description: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class PickListDetail(PickListSummary):
    items: List[PickListItemResponse] = []

class PickListListResponse(BaseModel):
    items: List[PickListSummary]
    total: int
    page: int
    limit: int

class PickListOperationResponse(BaseModel):
    success: bool = True
    message: str
    id: Optional[int] = None

# ==================== ITENS ====================

class PickItemPayload(BaseModel):
    """Linha do romaneio (persistência direta, sem recálculo)"""
    product_id: int
    shelf_id: int
    quantity: int = Field(1, ge=1, description="Quantidade em caixas")

class PickItemKey(BaseModel):
    product_id: int
    shelf_id: int

class ScanRequest(BaseModel):
    barcode: str = Field(..., min_length=1, description="Código de barras bipado")

class QuantityUpdate(BaseModel):
    product_id: int
    shelf_id: int
    quantity: int = Field(..., description="Caixas; valores abaixo de 1 viram 1")

# ==================== ALOCAÇÃO ====================

class AllocationResponse(BaseModel):
    product_id: int
    product_name: str
    product_sku: str = ""
    shelf_id: int
    shelf_name: str
    units: int
    boxes: int
    distributor_id: Optional[int] = None
    insufficient: bool = False

class RoutedShelfGroupResponse(BaseModel):
    shelf_id: int
    shelf_name: str
    items: List[AllocationResponse]

class AllocationResultResponse(BaseModel):
    """Alocação por produto e rota de separação por prateleira"""
    allocations_by_product: Dict[int, List[AllocationResponse]] = {}
    routed_groups: List[RoutedShelfGroupResponse] = []
    shortfalls: List[str] = []
    fallback: bool = False

class PickingSessionResponse(BaseModel):
    """Itens atuais do romaneio com a alocação recalculada"""
    pick_list_id: int
    status: str
    items: List[PickListItemResponse]
    allocation: AllocationResultResponse

class ScanResponse(PickingSessionResponse):
    created: bool = Field(..., description="Nova linha (True) ou incremento (False)")
    product_id: int
    shelf_id: int
    quantity: int

# ==================== FINALIZAÇÃO ====================

class DecrementResponse(BaseModel):
    product_id: int
    shelf_id: int
    shelf_name: str
    units: int
    distributor_id: Optional[int] = None
    reason: Optional[str] = None

class FinalizeResponse(BaseModel):
    pick_list_id: int
    status: str
    applied: List[DecrementResponse] = []
    skipped: List[DecrementResponse] = []
    failed: List[DecrementResponse] = []
    shortfalls: List[str] = []
    applied_count: int = 0
    skipped_count: int = 0
    failed_count: int = 0
    message: str
