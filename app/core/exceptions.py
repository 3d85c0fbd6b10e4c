"""
Exceções de domínio do Estoque/Romaneio.

O núcleo de separação levanta estas exceções; os services as convertem
em HTTPException com mensagens para o usuário.
"""


class EstoqueError(Exception):
    """Exceção base da aplicação"""
    pass


class NotFoundError(EstoqueError):
    """Código de barras ou registro que não corresponde a nada"""
    pass


class InvalidInputError(EstoqueError):
    """Requisição rejeitada antes de qualquer trabalho"""
    pass


class PickListClosedError(InvalidInputError):
    """Romaneio concluído recebendo alteração ou segunda finalização"""
    pass


class InsufficientStockError(EstoqueError):
    """Retirada que deixaria o estoque abaixo de zero"""

    def __init__(self, message: str, available: int = 0, requested: int = 0):
        super().__init__(message)
        self.available = available
        self.requested = requested


class LookupFailure(EstoqueError):
    """Consulta de estoque que falhou ou excedeu o tempo limite"""
    pass
