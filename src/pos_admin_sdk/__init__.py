from .auth_store import AuthStore, ProfileStore
from .card_resolution import CardResolver, CardSelection, validate_card_selection
from .config import ClientConfig, ConfigError, load_config
from .exceptions import (
    ApiError,
    AuthError,
    ForbiddenError,
    NotAuthenticatedError,
    NotFoundError,
    RequestCancelledError,
    SessionExpiredError,
    TransportError,
    UnauthorizedError,
    ValidationError,
)
from .http_client import HttpClient
from .models import (
    Client,
    ClientWriteRequest,
    Product,
    ProductWriteRequest,
    SessionData,
    TokenResponse,
    WorkerProfile,
)
from .models_cards import Card, CardCreateRequest
from .models_credits import (
    Credit,
    CreditCreateRequest,
    CreditPayment,
    CreditPaymentRequest,
    CreditStatus,
)
from .models_inventory import InventoryDetail
from .models_sales import (
    PaymentMethod,
    Sale,
    SaleDetail,
    SaleDetailWriteRequest,
    SaleKind,
    SaleStatus,
    SaleWriteRequest,
)
from .profile_cache import ProfileProvider
from .sale_errors import (
    InsufficientStockError,
    InventoryDecrementError,
    SagaInProgressError,
    SaleStageError,
    StockVerificationError,
)
from .sale_saga import SaleOutcome, SaleSaga, SaleTransactionContext
from .sale_state import SagaStage, SagaStatus
from .sale_totals import SaleTotals, compute_sale_totals
from .session import ApiSession
from .stock_verifier import StockCheck, StockVerifier
from .validation import ClientValidationError, ValidationIssue, validate_sale_inputs

__all__ = [
    "ApiError",
    "ApiSession",
    "AuthError",
    "AuthStore",
    "Card",
    "CardCreateRequest",
    "CardResolver",
    "CardSelection",
    "Client",
    "ClientConfig",
    "ClientValidationError",
    "ClientWriteRequest",
    "ConfigError",
    "Credit",
    "CreditCreateRequest",
    "CreditPayment",
    "CreditPaymentRequest",
    "CreditStatus",
    "ForbiddenError",
    "HttpClient",
    "InsufficientStockError",
    "InventoryDecrementError",
    "InventoryDetail",
    "NotAuthenticatedError",
    "NotFoundError",
    "PaymentMethod",
    "Product",
    "ProductWriteRequest",
    "ProfileProvider",
    "ProfileStore",
    "RequestCancelledError",
    "SagaInProgressError",
    "SagaStage",
    "SagaStatus",
    "Sale",
    "SaleDetail",
    "SaleDetailWriteRequest",
    "SaleKind",
    "SaleOutcome",
    "SaleSaga",
    "SaleStageError",
    "SaleStatus",
    "SaleTotals",
    "SaleTransactionContext",
    "SaleWriteRequest",
    "SessionData",
    "SessionExpiredError",
    "StockCheck",
    "StockVerificationError",
    "StockVerifier",
    "TokenResponse",
    "TransportError",
    "UnauthorizedError",
    "ValidationError",
    "ValidationIssue",
    "WorkerProfile",
    "compute_sale_totals",
    "load_config",
    "validate_card_selection",
    "validate_sale_inputs",
]
