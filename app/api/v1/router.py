# app/api/v1/router.py
from fastapi import APIRouter
from app.api.v1.auth import router as auth_router

from app.modules.catalog import catalog_router
from app.modules.inventory import inventory_router
from app.modules.picking import picking_router
from app.modules.admin import admin_router
from app.config.settings import settings


# Router principal da API v1
api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["authentication"])

# Cadastros: /api/v1/produtos, /api/v1/prateleiras, /api/v1/distribuidores
api_router.include_router(catalog_router)

# Estoque: /api/v1/estoque
api_router.include_router(inventory_router)

# Romaneios: /api/v1/picking
api_router.include_router(picking_router)

# Usuários e histórico: /api/v1/admin
api_router.include_router(admin_router)


@api_router.get("/")
async def api_root():
    """Root endpoint da API"""
    return {
        "message": f"{settings.app_name} v1",
        "version": settings.version,
        "status": "active",
        "docs": "/docs",
        "available_endpoints": {
            "authentication": "/api/v1/auth",
            "catalog": "/api/v1/produtos, /api/v1/prateleiras, /api/v1/distribuidores",
            "inventory": "/api/v1/estoque",
            "picking": "/api/v1/picking",
            "admin": "/api/v1/admin"
        }
    }

@api_router.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.version,
        "architecture": "modular_monolith",
        "modules": ["auth", "catalog", "inventory", "picking", "admin"]
    }
