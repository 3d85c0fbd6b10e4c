# app/modules/catalog/service.py
import logging
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.shared.database.models import Product, Shelf, Distributor, User
from app.shared.services.history import record_history
from .repository import CatalogRepository
from .schemas import *

logger = logging.getLogger(__name__)

class CatalogService:
    """
    Cadastros básicos. Toda criação, edição e exclusão fica no histórico.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repository = CatalogRepository(db)

    # ==================== PRODUTOS ====================

    def list_products(
        self,
        search: Optional[str],
        search_field: ProductSearchField,
        page: int,
        limit: int
    ) -> ProductListResponse:
        products, total = self.repository.list_products(
            search=(search or "").strip() or None,
            search_field=search_field.value,
            page=page,
            limit=limit
        )
        return ProductListResponse(
            items=[ProductResponse.from_orm(p) for p in products],
            total=total
        )

    def get_product(self, product_id: int) -> ProductResponse:
        return ProductResponse.from_orm(self._get_product_or_404(product_id))

    def create_product(self, product_data: ProductCreate, current_user: User) -> ProductResponse:
        product = self.repository.create(Product, product_data.dict())
        record_history(self.db, current_user.id, "produto", product.id, "Cadastrou Produto")
        logger.info(f"Produto criado: {product.name} (id {product.id})")
        return ProductResponse.from_orm(product)

    def update_product(self, product_id: int, update: ProductUpdate, current_user: User) -> ProductResponse:
        product = self._get_product_or_404(product_id)
        update_data = update.dict(exclude_unset=True)
        if "name" in update_data and update_data["name"] is not None:
            update_data["name"] = update_data["name"].strip()

        product = self.repository.update(product, update_data)
        record_history(self.db, current_user.id, "produto", product.id, "Editou Produto")
        return ProductResponse.from_orm(product)

    def delete_product(self, product_id: int, current_user: User) -> CatalogOperationResponse:
        product = self._get_product_or_404(product_id)
        if self.repository.product_in_use(product_id):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Produto possui estoque ou itens de romaneio vinculados"
            )

        self.repository.delete(product)
        record_history(self.db, current_user.id, "produto", product_id, "Removeu Produto")
        return CatalogOperationResponse(message="Produto removido com sucesso", id=product_id)

    # ==================== PRATELEIRAS ====================

    def list_shelves(self, search: Optional[str], page: int, limit: int) -> ShelfListResponse:
        shelves, total = self.repository.list_shelves((search or "").strip() or None, page, limit)
        return ShelfListResponse(items=[ShelfResponse.from_orm(s) for s in shelves], total=total)

    def create_shelf(self, shelf_data: ShelfCreate, current_user: User) -> ShelfResponse:
        if self.repository.get_shelf_by_name(shelf_data.name):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Prateleira já cadastrada")

        shelf = self.repository.create(Shelf, shelf_data.dict())
        record_history(self.db, current_user.id, "prateleira", shelf.id, "Cadastrou Prateleira")
        return ShelfResponse.from_orm(shelf)

    def update_shelf(self, shelf_id: int, update: ShelfUpdate, current_user: User) -> ShelfResponse:
        shelf = self._get_shelf_or_404(shelf_id)
        existing = self.repository.get_shelf_by_name(update.name)
        if existing and existing.id != shelf_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Prateleira já cadastrada")

        shelf = self.repository.update(shelf, update.dict())
        record_history(self.db, current_user.id, "prateleira", shelf.id, "Editou Prateleira")
        return ShelfResponse.from_orm(shelf)

    def delete_shelf(self, shelf_id: int, current_user: User) -> CatalogOperationResponse:
        shelf = self._get_shelf_or_404(shelf_id)
        if self.repository.shelf_in_use(shelf_id):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Prateleira possui estoque ou itens de romaneio vinculados"
            )

        self.repository.delete(shelf)
        record_history(self.db, current_user.id, "prateleira", shelf_id, "Removeu Prateleira")
        return CatalogOperationResponse(message="Prateleira removida com sucesso", id=shelf_id)

    # ==================== DISTRIBUIDORES ====================

    def list_distributors(self, search: Optional[str], page: int, limit: int) -> DistributorListResponse:
        distributors, total = self.repository.list_distributors((search or "").strip() or None, page, limit)
        return DistributorListResponse(items=[DistributorResponse.from_orm(d) for d in distributors], total=total)

    def create_distributor(self, distributor_data: DistributorCreate, current_user: User) -> DistributorResponse:
        if self.repository.get_distributor_by_name(distributor_data.name):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Distribuidor já cadastrado")

        distributor = self.repository.create(Distributor, distributor_data.dict())
        record_history(self.db, current_user.id, "distribuidor", distributor.id, "Cadastrou Distribuidor")
        return DistributorResponse.from_orm(distributor)

    def update_distributor(
        self, distributor_id: int, update: DistributorUpdate, current_user: User
    ) -> DistributorResponse:
        distributor = self._get_distributor_or_404(distributor_id)
        existing = self.repository.get_distributor_by_name(update.name)
        if existing and existing.id != distributor_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Distribuidor já cadastrado")

        distributor = self.repository.update(distributor, update.dict())
        record_history(self.db, current_user.id, "distribuidor", distributor.id, "Editou Distribuidor")
        return DistributorResponse.from_orm(distributor)

    def delete_distributor(self, distributor_id: int, current_user: User) -> CatalogOperationResponse:
        distributor = self._get_distributor_or_404(distributor_id)
        if self.repository.distributor_in_use(distributor_id):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Distribuidor possui estoque vinculado"
            )

        self.repository.delete(distributor)
        record_history(self.db, current_user.id, "distribuidor", distributor_id, "Removeu Distribuidor")
        return CatalogOperationResponse(message="Distribuidor removido com sucesso", id=distributor_id)

    # ==================== AUXILIARES ====================

    def _get_product_or_404(self, product_id: int) -> Product:
        product = self.repository.get_product(product_id)
        if not product:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Produto não encontrado")
        return product

    def _get_shelf_or_404(self, shelf_id: int) -> Shelf:
        shelf = self.repository.get_shelf(shelf_id)
        if not shelf:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Prateleira não encontrada")
        return shelf

    def _get_distributor_or_404(self, distributor_id: int) -> Distributor:
        distributor = self.repository.get_distributor(distributor_id)
        if not distributor:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Distribuidor não encontrado")
        return distributor
