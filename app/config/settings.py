from pydantic import Field
from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    # App Info
    app_name: str = "Estoque Romaneio API"
    version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"
    
    # Database
    database_url: str
    
    # Security
    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 10080  # 1 semana
    
    # CORS
    allowed_origins: List[str] = ["http://localhost:3000"]
    
    # Paginação
    page_size_default: int = 100
    picking_page_size: int = 50
    
    # Romaneio
    stock_lookup_timeout_seconds: float = Field(
        default=5.0,
        description="Tempo máximo de cada consulta de estoque durante a alocação"
    )
    
    # Importação CSV
    csv_default_shelf_name: str = Field(
        default="RECEBIMENTO",
        description="Prateleira que recebe os itens importados via CSV"
    )
    csv_default_distributor_name: Optional[str] = Field(
        default=None,
        description="Distribuidor usado quando a linha do CSV não informa um válido"
    )
    
    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    
    class Config:
        env_file = ".env"
        case_sensitive = False

settings = Settings()
