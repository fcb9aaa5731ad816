# errors.py
"""Exceções do app: falhas de rede, resultado vazio e falhas do store."""


class MovieAppError(Exception):
    """Base de todos os erros do app."""


class NetworkFailure(MovieAppError):
    """Requisição falhou ou a API respondeu com status fora de 2xx."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code


class EmptyResult(MovieAppError):
    """A API não encontrou nenhum filme."""


class StoreFailure(MovieAppError):
    """Chamada ao document store (trending) falhou."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code
