# app/modules/admin/repository.py
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Tuple
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import desc, asc

from app.shared.database.models import (
    User, HistoryEntry, Product, Shelf, Distributor, StockEntry, PickList
)

class AdminRepository:
    """
    Repositório de usuários e histórico
    """

    def __init__(self, db: Session):
        self.db = db

    # ==================== GESTÃO DE USUÁRIOS ====================

    def list_users(self) -> List[User]:
        return self.db.query(User).order_by(asc(User.name)).all()

    def get_user(self, user_id: int) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()

    def create_user(self, user_data: dict) -> User:
        db_user = User(**user_data)
        self.db.add(db_user)
        self.db.commit()
        self.db.refresh(db_user)
        return db_user

    def update_user(self, user: User, update_data: dict) -> User:
        for key, value in update_data.items():
            if hasattr(user, key) and value is not None:
                setattr(user, key, value)
        self.db.commit()
        self.db.refresh(user)
        return user

    # ==================== HISTÓRICO ====================

    def list_history(
        self,
        start_date: Optional[date] = None,
        user_id: Optional[int] = None,
        entity: Optional[str] = None,
        action: Optional[str] = None,
        page: int = 1,
        limit: int = 100
    ) -> Tuple[List[HistoryEntry], int]:
        """Histórico mais recente primeiro; ``start_date`` cobre o dia inteiro"""
        query = self.db.query(HistoryEntry).options(joinedload(HistoryEntry.user))

        if start_date:
            day_start = datetime.combine(start_date, time.min)
            query = query.filter(
                HistoryEntry.created_at >= day_start,
                HistoryEntry.created_at < day_start + timedelta(days=1)
            )
        if user_id:
            query = query.filter(HistoryEntry.user_id == user_id)
        if entity:
            query = query.filter(HistoryEntry.entity == entity)
        if action:
            query = query.filter(HistoryEntry.action.ilike(f"%{action}%"))

        total = query.count()
        entries = query.order_by(desc(HistoryEntry.created_at), desc(HistoryEntry.id))\
            .offset((page - 1) * limit)\
            .limit(limit)\
            .all()
        return entries, total

    def entity_display_name(self, entity: str, entity_id: int) -> Optional[str]:
        """Nome legível da entidade referenciada no histórico"""
        if entity == "produto":
            product = self.db.query(Product).filter(Product.id == entity_id).first()
            return product.name if product else None
        if entity == "prateleira":
            shelf = self.db.query(Shelf).filter(Shelf.id == entity_id).first()
            return shelf.name if shelf else None
        if entity == "distribuidor":
            distributor = self.db.query(Distributor).filter(Distributor.id == entity_id).first()
            return distributor.name if distributor else None
        if entity == "user":
            user = self.get_user(entity_id)
            return user.name if user else None
        if entity == "romaneio":
            pick_list = self.db.query(PickList).filter(PickList.id == entity_id).first()
            return pick_list.number if pick_list else None
        if entity == "estoque":
            stock = self.db.query(StockEntry)\
                .options(joinedload(StockEntry.product), joinedload(StockEntry.shelf))\
                .filter(StockEntry.id == entity_id).first()
            if not stock:
                return None
            product_name = stock.product.name if stock.product else "Sem nome"
            shelf_name = stock.shelf.name if stock.shelf else "Sem prateleira"
            return f"{product_name} - {shelf_name}"
        return None
