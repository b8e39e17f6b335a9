# src/core/errors.py
"""
Feltaxonomi för cotação-backenden.

Tjänsterna (src/services) kastar dessa; HTTP-lagret i src/server/main.py
översätter dem till statuskoder och {"message": ...}.
"""

from __future__ import annotations

from typing import List, Optional


class QuotationError(Exception):
    """Basklass. `message` är alltid säker att visa för klienten."""

    status_code = 500
    message = "Erro interno do servidor."

    def __init__(self, message: Optional[str] = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationError(QuotationError):
    status_code = 400
    message = "Todos os campos obrigatórios do formulário devem ser preenchidos."

    def __init__(self, message: Optional[str] = None, fields: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.fields = list(fields or [])


class Unauthorized(QuotationError):
    status_code = 401
    message = "Acesso negado. Token inválido ou expirado."


class NotFound(QuotationError):
    status_code = 404
    message = "Recurso não encontrado."


class DependencyFailure(QuotationError):
    """Databas, mail eller filsystem svarade inte som väntat."""

    status_code = 500
    message = "Erro interno ao processar a solicitação."


class ConfigError(QuotationError):
    status_code = 500
    message = "Erro de configuração do servidor."
