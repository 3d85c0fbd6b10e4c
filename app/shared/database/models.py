from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.config.database import Base

class TimestampMixin:
    """Mixin para timestamps automáticos"""
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

# ===== USUÁRIOS =====

class User(Base):
    """Usuário do sistema (perfil + credenciais)"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(50), default='operador', nullable=False)
    status = Column(String(50), default='ativo', nullable=False)
    created_at = Column(DateTime, server_default=func.current_timestamp())
    last_sign_in_at = Column(DateTime)

    # Relationships
    history_entries = relationship("HistoryEntry", back_populates="user")

    @property
    def is_active(self):
        return self.status != "inativo"

# ===== CADASTROS =====

class Product(Base):
    """Produto"""
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    sku = Column(String(255), index=True)
    barcode = Column(String(255), index=True)
    low_stock_threshold = Column(Integer, default=0, nullable=False)  # estoque_baixo
    units_per_box = Column(Integer, default=1, nullable=False)  # quantidade_caixa

    # Relationships
    stock_entries = relationship("StockEntry", back_populates="product")

class Shelf(Base):
    """Prateleira - o nome codifica corredor (letra) e posição (número), ex.: A40"""
    __tablename__ = "shelves"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False, index=True)

    # Relationships
    stock_entries = relationship("StockEntry", back_populates="shelf")

class Distributor(Base):
    """Distribuidor"""
    __tablename__ = "distributors"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False, index=True)

    # Relationships
    stock_entries = relationship("StockEntry", back_populates="distributor")

# ===== ESTOQUE =====

class StockEntry(Base):
    """Quantidade (em unidades) de um produto numa prateleira, por distribuidor"""
    __tablename__ = "stock_entries"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    shelf_id = Column(Integer, ForeignKey("shelves.id"), nullable=False, index=True)
    distributor_id = Column(Integer, ForeignKey("distributors.id"), nullable=False, index=True)
    quantity = Column(Integer, default=0, nullable=False)

    __table_args__ = (
        UniqueConstraint('product_id', 'shelf_id', 'distributor_id', name='stock_unique_partition'),
    )

    # Relationships
    product = relationship("Product", back_populates="stock_entries")
    shelf = relationship("Shelf", back_populates="stock_entries")
    distributor = relationship("Distributor", back_populates="stock_entries")

# ===== ROMANEIOS =====

class PickList(Base, TimestampMixin):
    """Romaneio (lista de separação)"""
    __tablename__ = "pick_lists"

    id = Column(Integer, primary_key=True, index=True)
    number = Column(String(100), nullable=False, index=True)
    description = Column(Text, default="")
    status = Column(String(50), default='pendente', nullable=False, index=True)

    # Relationships
    items = relationship(
        "PickListItem",
        back_populates="pick_list",
        order_by="PickListItem.id",
        cascade="all, delete-orphan"
    )

class PickListItem(Base):
    """Linha bipada do romaneio - quantidade em caixas"""
    __tablename__ = "pick_list_items"

    id = Column(Integer, primary_key=True, index=True)
    pick_list_id = Column(Integer, ForeignKey("pick_lists.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    shelf_id = Column(Integer, ForeignKey("shelves.id"), nullable=False)
    quantity = Column(Integer, default=1, nullable=False)

    __table_args__ = (
        UniqueConstraint('pick_list_id', 'product_id', 'shelf_id', name='pick_item_unique_line'),
    )

    # Relationships
    pick_list = relationship("PickList", back_populates="items")
    product = relationship("Product")
    shelf = relationship("Shelf")

# ===== HISTÓRICO =====

class HistoryEntry(Base):
    """Registro de auditoria: quem fez o quê em qual entidade"""
    __tablename__ = "history_entries"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    entity = Column(String(50), nullable=False, index=True)
    entity_id = Column(Integer, nullable=False)
    action = Column(String(255), nullable=False)
    quantity = Column(Integer)
    created_at = Column(DateTime, server_default=func.current_timestamp(), index=True)

    # Relationships
    user = relationship("User", back_populates="history_entries")
