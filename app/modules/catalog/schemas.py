# app/modules/catalog/schemas.py
from pydantic import BaseModel, Field, validator
from typing import List, Optional
from enum import Enum

class ProductSearchField(str, Enum):
    NAME = "name"
    SKU = "sku"
    BARCODE = "barcode"

# ==================== PRODUTOS ====================

class ProductBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, description="Nome do produto")
    sku: Optional[str] = Field(None, max_length=255)
    barcode: Optional[str] = Field(None, max_length=255, description="Código de barras")
    low_stock_threshold: int = Field(0, ge=0, description="Estoque baixo (unidades)")
    units_per_box: int = Field(1, ge=1, description="Unidades por caixa")

    @validator('name')
    def validate_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('Nome do produto é obrigatório')
        return v

class ProductCreate(ProductBase):
    pass

class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    sku: Optional[str] = None
    barcode: Optional[str] = None
    low_stock_threshold: Optional[int] = Field(None, ge=0)
    units_per_box: Optional[int] = Field(None, ge=1)

class ProductResponse(ProductBase):
    id: int

    class Config:
        from_attributes = True

class ProductListResponse(BaseModel):
    items: List[ProductResponse]
    total: int

# ==================== PRATELEIRAS ====================

class ShelfCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, description="Ex.: A40, B12")

    @validator('name')
    def normalize_name(cls, v):
        v = v.strip().upper()
        if not v:
            raise ValueError('Nome da prateleira é obrigatório')
        return v

class ShelfUpdate(ShelfCreate):
    pass

class ShelfResponse(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True

class ShelfListResponse(BaseModel):
    items: List[ShelfResponse]
    total: int

# ==================== DISTRIBUIDORES ====================

class DistributorCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)

    @validator('name')
    def validate_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('Nome do distribuidor é obrigatório')
        return v

class DistributorUpdate(DistributorCreate):
    pass

class DistributorResponse(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True

class DistributorListResponse(BaseModel):
    items: List[DistributorResponse]
    total: int

class CatalogOperationResponse(BaseModel):
    success: bool = True
    message: str
    id: Optional[int] = None
