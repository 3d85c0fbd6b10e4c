# app/modules/catalog/router.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from app.config.database import get_db
from app.config.settings import settings
from app.core.auth.dependencies import get_current_user
from app.shared.database.models import User
from .service import CatalogService
from .schemas import *

router = APIRouter(tags=["Cadastros"])

# ==================== PRODUTOS ====================

@router.get("/produtos", response_model=ProductListResponse)
async def list_products(
    search: Optional[str] = Query(None, description="Texto a buscar"),
    search_field: ProductSearchField = Query(ProductSearchField.NAME),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.page_size_default, ge=1, le=500),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Listar produtos por nome, com busca por nome, SKU ou código de barras"""
    service = CatalogService(db)
    return service.list_products(search, search_field, page, limit)

@router.get("/produtos/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    service = CatalogService(db)
    return service.get_product(product_id)

@router.post("/produtos", response_model=ProductResponse)
async def create_product(
    product_data: ProductCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    service = CatalogService(db)
    return service.create_product(product_data, current_user)

@router.patch("/produtos/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: int,
    update: ProductUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    service = CatalogService(db)
    return service.update_product(product_id, update, current_user)

@router.delete("/produtos/{product_id}", response_model=CatalogOperationResponse)
async def delete_product(
    product_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Remover produto

    Rejeitado enquanto houver estoque ou itens de romaneio apontando para ele.
    """
    service = CatalogService(db)
    return service.delete_product(product_id, current_user)

# ==================== PRATELEIRAS ====================

@router.get("/prateleiras", response_model=ShelfListResponse)
async def list_shelves(
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.page_size_default, ge=1, le=500),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    service = CatalogService(db)
    return service.list_shelves(search, page, limit)

@router.post("/prateleiras", response_model=ShelfResponse)
async def create_shelf(
    shelf_data: ShelfCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Cadastrar prateleira

    O nome define a rota de separação: letra do corredor seguida da posição (ex.: A40).
    """
    service = CatalogService(db)
    return service.create_shelf(shelf_data, current_user)

@router.patch("/prateleiras/{shelf_id}", response_model=ShelfResponse)
async def update_shelf(
    shelf_id: int,
    update: ShelfUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    service = CatalogService(db)
    return service.update_shelf(shelf_id, update, current_user)

@router.delete("/prateleiras/{shelf_id}", response_model=CatalogOperationResponse)
async def delete_shelf(
    shelf_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    service = CatalogService(db)
    return service.delete_shelf(shelf_id, current_user)

# ==================== DISTRIBUIDORES ====================

@router.get("/distribuidores", response_model=DistributorListResponse)
async def list_distributors(
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.page_size_default, ge=1, le=500),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    service = CatalogService(db)
    return service.list_distributors(search, page, limit)

@router.post("/distribuidores", response_model=DistributorResponse)
async def create_distributor(
    distributor_data: DistributorCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    service = CatalogService(db)
    return service.create_distributor(distributor_data, current_user)

@router.patch("/distribuidores/{distributor_id}", response_model=DistributorResponse)
async def update_distributor(
    distributor_id: int,
    update: DistributorUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    service = CatalogService(db)
    return service.update_distributor(distributor_id, update, current_user)

@router.delete("/distribuidores/{distributor_id}", response_model=CatalogOperationResponse)
async def delete_distributor(
    distributor_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    service = CatalogService(db)
    return service.delete_distributor(distributor_id, current_user)
