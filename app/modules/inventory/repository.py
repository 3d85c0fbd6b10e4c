# app/modules/inventory/repository.py
from typing import List, Optional, Tuple, Dict, Any
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import asc

from app.core.exceptions import InsufficientStockError, NotFoundError
from app.shared.database.models import StockEntry, Product, Shelf, Distributor
from .schemas import StockSearchField, StockFilter

class InventoryRepository:
    """
    Repositório do estoque (quantidades por produto x prateleira x distribuidor)
    """

    def __init__(self, db: Session):
        self.db = db

    def _base_query(self):
        return self.db.query(StockEntry)\
            .join(Product, Product.id == StockEntry.product_id)\
            .join(Shelf, Shelf.id == StockEntry.shelf_id)\
            .options(
                joinedload(StockEntry.product),
                joinedload(StockEntry.shelf),
                joinedload(StockEntry.distributor)
            )

    # ==================== CONSULTAS ====================

    def list_entries(
        self,
        search: Optional[str] = None,
        search_field: StockSearchField = StockSearchField.PRODUCT_NAME,
        stock_filter: Optional[StockFilter] = None,
        page: int = 1,
        limit: int = 100
    ) -> Tuple[List[StockEntry], int]:
        """Listar estoque com busca, filtro de estoque baixo/zerado e paginação"""

        # Linhas sem nome de produto não aparecem na listagem
        query = self._base_query().filter(Product.name.isnot(None), Product.name != "")

        if search:
            if search_field == StockSearchField.PRODUCT_NAME:
                query = query.filter(Product.name.ilike(f"%{search}%"))
            elif search_field == StockSearchField.PRODUCT_SKU:
                query = query.filter(Product.sku.ilike(f"%{search}%"))
            elif search_field == StockSearchField.PRODUCT_BARCODE:
                query = query.filter(Product.barcode.ilike(f"%{search}%"))
            elif search_field == StockSearchField.PRODUCT_ID:
                query = query.filter(StockEntry.product_id == int(search))
            elif search_field == StockSearchField.SHELF_ID:
                query = query.filter(StockEntry.shelf_id == int(search))

        if stock_filter == StockFilter.LOW:
            query = query.filter(StockEntry.quantity <= Product.low_stock_threshold)
        elif stock_filter == StockFilter.EMPTY:
            query = query.filter(StockEntry.quantity == 0)

        total = query.count()
        entries = query.order_by(asc(StockEntry.id))\
            .offset((page - 1) * limit)\
            .limit(limit)\
            .all()

        return entries, total

    def get_entry(self, entry_id: int) -> Optional[StockEntry]:
        return self.db.query(StockEntry).filter(StockEntry.id == entry_id).first()

    def find_entry(self, product_id: int, shelf_id: int, distributor_id: int) -> Optional[StockEntry]:
        return self.db.query(StockEntry)\
            .filter(
                StockEntry.product_id == product_id,
                StockEntry.shelf_id == shelf_id,
                StockEntry.distributor_id == distributor_id
            ).first()

    def entries_for_product(self, product_id: int) -> List[StockEntry]:
        """Todas as partições de estoque de um produto"""
        return self._base_query()\
            .filter(StockEntry.product_id == product_id)\
            .order_by(asc(StockEntry.id))\
            .all()

    def entry_for_barcode(self, barcode: str) -> Optional[StockEntry]:
        """Primeira linha de estoque cujo produto tem exatamente este código de barras"""
        return self._base_query()\
            .filter(Product.barcode == barcode)\
            .order_by(asc(StockEntry.id))\
            .first()

    # ==================== MOVIMENTAÇÃO ====================

    def add_stock(self, product_id: int, shelf_id: int, distributor_id: int, quantity: int) -> Tuple[StockEntry, bool]:
        """Soma na partição existente ou cria uma nova. Retorna (linha, criada?)"""
        entry = self.find_entry(product_id, shelf_id, distributor_id)
        created = entry is None

        if created:
            entry = StockEntry(
                product_id=product_id,
                shelf_id=shelf_id,
                distributor_id=distributor_id,
                quantity=quantity
            )
            self.db.add(entry)
        else:
            entry.quantity += quantity

        self.db.commit()
        self.db.refresh(entry)
        return entry, created

    def adjust(self, product_id: int, shelf_id: int, distributor_id: int, delta: int) -> StockEntry:
        """
        Aplica ``delta`` (positivo entra, negativo sai) numa partição.
        Retirada nunca é truncada: se faltar estoque, nada muda.
        """
        entry = self.find_entry(product_id, shelf_id, distributor_id)

        if entry is None:
            if delta < 0:
                raise NotFoundError("Não há estoque para retirar")
            entry, _ = self.add_stock(product_id, shelf_id, distributor_id, delta)
            return entry

        if entry.quantity + delta < 0:
            raise InsufficientStockError(
                "Quantidade a retirar maior que o estoque disponível",
                available=entry.quantity,
                requested=-delta
            )

        entry.quantity += delta
        self.db.commit()
        self.db.refresh(entry)
        return entry

    def update_entry(self, entry: StockEntry, update_data: Dict[str, Any]) -> StockEntry:
        for key, value in update_data.items():
            if hasattr(entry, key) and value is not None:
                setattr(entry, key, value)
        self.db.commit()
        self.db.refresh(entry)
        return entry

    def delete_entry(self, entry: StockEntry) -> None:
        self.db.delete(entry)
        self.db.commit()

    # ==================== AUXILIARES ====================

    def get_product_by_sku(self, sku: str) -> Optional[Product]:
        return self.db.query(Product).filter(Product.sku == sku).first()

    def get_distributor_by_name(self, name: str) -> Optional[Distributor]:
        return self.db.query(Distributor).filter(Distributor.name.ilike(name)).first()

    def get_shelf_by_name(self, name: str) -> Optional[Shelf]:
        return self.db.query(Shelf).filter(Shelf.name == name).first()

    def create_shelf(self, name: str) -> Shelf:
        shelf = Shelf(name=name)
        self.db.add(shelf)
        self.db.commit()
        self.db.refresh(shelf)
        return shelf

    def references_exist(self, product_id: int, shelf_id: int, distributor_id: int) -> bool:
        return (
            self.db.query(Product.id).filter(Product.id == product_id).first() is not None
            and self.db.query(Shelf.id).filter(Shelf.id == shelf_id).first() is not None
            and self.db.query(Distributor.id).filter(Distributor.id == distributor_id).first() is not None
        )
