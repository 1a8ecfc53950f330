from .auth import AuthClient
from .cards_client import CardsClient
from .catalog_client import CatalogClient
from .credits_client import CreditsClient
from .inventory_details_client import InventoryDetailsClient
from .sale_details_client import SaleDetailsClient
from .sales_client import SalesClient

__all__ = [
    "AuthClient",
    "CardsClient",
    "CatalogClient",
    "CreditsClient",
    "InventoryDetailsClient",
    "SaleDetailsClient",
    "SalesClient",
]
