# app/modules/catalog/repository.py
from typing import List, Optional, Tuple, Dict, Any, Type
from sqlalchemy.orm import Session
from sqlalchemy import asc

from app.shared.database.models import Product, Shelf, Distributor, StockEntry, PickListItem

class CatalogRepository:
    """
    Repositório dos cadastros: produtos, prateleiras e distribuidores
    """

    def __init__(self, db: Session):
        self.db = db

    def _paginate(self, query, order_column, page: int, limit: int) -> Tuple[List[Any], int]:
        total = query.count()
        items = query.order_by(asc(order_column))\
            .offset((page - 1) * limit)\
            .limit(limit)\
            .all()
        return items, total

    # ==================== PRODUTOS ====================

    def list_products(
        self,
        search: Optional[str] = None,
        search_field: str = "name",
        page: int = 1,
        limit: int = 100
    ) -> Tuple[List[Product], int]:
        query = self.db.query(Product)
        if search:
            column = getattr(Product, search_field)
            query = query.filter(column.ilike(f"%{search}%"))
        return self._paginate(query, Product.name, page, limit)

    def get_product(self, product_id: int) -> Optional[Product]:
        return self.db.query(Product).filter(Product.id == product_id).first()

    def get_product_by_sku(self, sku: str) -> Optional[Product]:
        return self.db.query(Product).filter(Product.sku == sku).first()

    def product_in_use(self, product_id: int) -> bool:
        return (
            self.db.query(StockEntry.id).filter(StockEntry.product_id == product_id).first() is not None
            or self.db.query(PickListItem.id).filter(PickListItem.product_id == product_id).first() is not None
        )

    # ==================== PRATELEIRAS ====================

    def list_shelves(self, search: Optional[str] = None, page: int = 1, limit: int = 100) -> Tuple[List[Shelf], int]:
        query = self.db.query(Shelf)
        if search:
            query = query.filter(Shelf.name.ilike(f"%{search}%"))
        return self._paginate(query, Shelf.name, page, limit)

    def get_shelf(self, shelf_id: int) -> Optional[Shelf]:
        return self.db.query(Shelf).filter(Shelf.id == shelf_id).first()

    def get_shelf_by_name(self, name: str) -> Optional[Shelf]:
        return self.db.query(Shelf).filter(Shelf.name == name).first()

    def shelf_in_use(self, shelf_id: int) -> bool:
        return (
            self.db.query(StockEntry.id).filter(StockEntry.shelf_id == shelf_id).first() is not None
            or self.db.query(PickListItem.id).filter(PickListItem.shelf_id == shelf_id).first() is not None
        )

    # ==================== DISTRIBUIDORES ====================

    def list_distributors(
        self, search: Optional[str] = None, page: int = 1, limit: int = 100
    ) -> Tuple[List[Distributor], int]:
        query = self.db.query(Distributor)
        if search:
            query = query.filter(Distributor.name.ilike(f"%{search}%"))
        return self._paginate(query, Distributor.name, page, limit)

    def get_distributor(self, distributor_id: int) -> Optional[Distributor]:
        return self.db.query(Distributor).filter(Distributor.id == distributor_id).first()

    def get_distributor_by_name(self, name: str) -> Optional[Distributor]:
        return self.db.query(Distributor).filter(Distributor.name.ilike(name)).first()

    def distributor_in_use(self, distributor_id: int) -> bool:
        return self.db.query(StockEntry.id).filter(StockEntry.distributor_id == distributor_id).first() is not None

    # ==================== ESCRITA ====================

    def create(self, model: Type, data: Dict[str, Any]):
        obj = model(**data)
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def update(self, obj, update_data: Dict[str, Any]):
        for key, value in update_data.items():
            if hasattr(obj, key) and value is not None:
                setattr(obj, key, value)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def delete(self, obj) -> None:
        self.db.delete(obj)
        self.db.commit()
