"""
Configuração de logging da aplicação
"""
import logging
import sys
from typing import Optional

from app.config.settings import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(log_level: Optional[str] = None) -> logging.Logger:
    """
    Configura o logger raiz da aplicação com saída no console.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR ou CRITICAL (padrão: settings.log_level)

    Returns:
        Logger do pacote ``app``
    """
    level = getattr(logging, (log_level or settings.log_level).upper(), logging.INFO)

    logger = logging.getLogger("app")
    logger.setLevel(level)
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(console_handler)

    # uvicorn já tem seus próprios handlers
    logger.propagate = False

    return logger
