# app/modules/picking/repository.py
from typing import List, Optional, Tuple
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import desc

from app.shared.database.models import PickList, PickListItem, Product, Shelf

class PickingRepository:
    """
    Repositório dos romaneios e de suas linhas
    """

    def __init__(self, db: Session):
        self.db = db

    # ==================== ROMANEIOS ====================

    def list_pick_lists(
        self,
        statuses: Optional[List[str]] = None,
        page: int = 1,
        limit: int = 50
    ) -> Tuple[List[PickList], int]:
        """Mais recentes primeiro"""
        query = self.db.query(PickList)
        if statuses:
            query = query.filter(PickList.status.in_(statuses))

        total = query.count()
        pick_lists = query.order_by(desc(PickList.created_at), desc(PickList.id))\
            .offset((page - 1) * limit)\
            .limit(limit)\
            .all()
        return pick_lists, total

    def get_pick_list(self, pick_list_id: int) -> Optional[PickList]:
        return self.db.query(PickList)\
            .options(
                joinedload(PickList.items).joinedload(PickListItem.product),
                joinedload(PickList.items).joinedload(PickListItem.shelf)
            )\
            .filter(PickList.id == pick_list_id)\
            .first()

    def create_pick_list(self, number: str, description: str, status: str) -> PickList:
        pick_list = PickList(number=number, description=description or "", status=status)
        self.db.add(pick_list)
        self.db.commit()
        self.db.refresh(pick_list)
        return pick_list

    def set_status(self, pick_list_id: int, status: str) -> None:
        self.db.query(PickList)\
            .filter(PickList.id == pick_list_id)\
            .update({PickList.status: status}, synchronize_session="fetch")
        self.db.commit()

    def delete_pick_list(self, pick_list: PickList) -> None:
        # O cascade remove os itens antes do romaneio
        self.db.delete(pick_list)
        self.db.commit()

    # ==================== ITENS ====================

    def get_item(self, pick_list_id: int, product_id: int, shelf_id: int) -> Optional[PickListItem]:
        return self.db.query(PickListItem)\
            .filter(
                PickListItem.pick_list_id == pick_list_id,
                PickListItem.product_id == product_id,
                PickListItem.shelf_id == shelf_id
            ).first()

    def items_for(self, pick_list_id: int) -> List[PickListItem]:
        """Linhas na ordem de inserção (= ordem de bipagem)"""
        return self.db.query(PickListItem)\
            .options(joinedload(PickListItem.product), joinedload(PickListItem.shelf))\
            .filter(PickListItem.pick_list_id == pick_list_id)\
            .order_by(PickListItem.id)\
            .all()

    def upsert_item(self, pick_list_id: int, product_id: int, shelf_id: int, quantity: int) -> PickListItem:
        item = self.get_item(pick_list_id, product_id, shelf_id)
        if item is None:
            item = PickListItem(
                pick_list_id=pick_list_id,
                product_id=product_id,
                shelf_id=shelf_id,
                quantity=quantity
            )
            self.db.add(item)
        else:
            item.quantity = quantity

        self.db.commit()
        self.db.refresh(item)
        return item

    def delete_item(self, pick_list_id: int, product_id: int, shelf_id: int) -> bool:
        deleted = self.db.query(PickListItem)\
            .filter(
                PickListItem.pick_list_id == pick_list_id,
                PickListItem.product_id == product_id,
                PickListItem.shelf_id == shelf_id
            ).delete(synchronize_session="fetch")
        self.db.commit()
        return deleted > 0

    # ==================== AUXILIARES ====================

    def references_exist(self, product_id: int, shelf_id: int) -> bool:
        return (
            self.db.query(Product.id).filter(Product.id == product_id).first() is not None
            and self.db.query(Shelf.id).filter(Shelf.id == shelf_id).first() is not None
        )
