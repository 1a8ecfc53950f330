from .auth_service import AuthService
from .clients_service import ClientsService, ClientsServiceError
from .credits_service import CreditsService, CreditsServiceError, CreditSummary, summarize_credits
from .products_service import ProductsService, ProductsServiceError, StockStatus, stock_status
from .sales_service import (
    Catalog,
    SaleEditDraft,
    SaleForm,
    SaleSubmissionResult,
    SalesService,
    SalesServiceError,
)

__all__ = [
    "AuthService",
    "Catalog",
    "ClientsService",
    "ClientsServiceError",
    "CreditSummary",
    "CreditsService",
    "CreditsServiceError",
    "ProductsService",
    "ProductsServiceError",
    "SaleEditDraft",
    "SaleForm",
    "SaleSubmissionResult",
    "SalesService",
    "SalesServiceError",
    "StockStatus",
    "stock_status",
    "summarize_credits",
]
