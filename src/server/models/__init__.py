# src/server/models/__init__.py
from .quotation import QuotationRow

__all_models = [QuotationRow]
