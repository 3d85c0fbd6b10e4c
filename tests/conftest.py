"""
Configuração e fixtures de teste
Banco SQLite em memória, recriado a cada teste
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from typing import Dict, Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from app.main import app
from app.config.database import get_db, Base
from app.core.auth.security import create_access_token, hash_password
from app.shared.database.models import User, Product, Shelf, Distributor, StockEntry

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Sessão nova para cada teste"""
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)

@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """TestClient com get_db apontando para a sessão de teste"""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()

def _create_user(db_session: Session, email: str, name: str, role: str, status: str = "ativo") -> User:
    user = User(
        email=email,
        name=name,
        password_hash=hash_password("senha123"),
        role=role,
        status=status
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user

@pytest.fixture
def operator_user(db_session: Session) -> User:
    return _create_user(db_session, "operador@estoque.com", "Operador Teste", "operador")

@pytest.fixture
def admin_user(db_session: Session) -> User:
    return _create_user(db_session, "admin@estoque.com", "Admin Teste", "admin")

@pytest.fixture
def auth_headers(operator_user: User) -> Dict[str, str]:
    token = create_access_token(operator_user.id, operator_user.role)
    return {"Authorization": f"Bearer {token}"}

@pytest.fixture
def admin_headers(admin_user: User) -> Dict[str, str]:
    token = create_access_token(admin_user.id, admin_user.role)
    return {"Authorization": f"Bearer {token}"}

@pytest.fixture
def warehouse(db_session: Session) -> Dict[str, object]:
    """
    Cadastro mínimo: dois produtos, três prateleiras, dois distribuidores

    - Parafuso (caixa com 10): A40 = 30, B12 = 50
    - Porca (caixa com 6): C05 = 12
    """
    screw = Product(name="Parafuso", sku="PAR-01", barcode="789100", units_per_box=10, low_stock_threshold=40)
    nut = Product(name="Porca", sku="POR-01", barcode="789200", units_per_box=6, low_stock_threshold=5)
    a40, b12, c05 = Shelf(name="A40"), Shelf(name="B12"), Shelf(name="C05")
    acme, beta = Distributor(name="Acme"), Distributor(name="Beta")
    db_session.add_all([screw, nut, a40, b12, c05, acme, beta])
    db_session.commit()

    db_session.add_all([
        StockEntry(product_id=screw.id, shelf_id=a40.id, distributor_id=acme.id, quantity=30),
        StockEntry(product_id=screw.id, shelf_id=b12.id, distributor_id=beta.id, quantity=50),
        StockEntry(product_id=nut.id, shelf_id=c05.id, distributor_id=acme.id, quantity=12),
    ])
    db_session.commit()

    return {
        "screw": screw, "nut": nut,
        "a40": a40, "b12": b12, "c05": c05,
        "acme": acme, "beta": beta
    }
