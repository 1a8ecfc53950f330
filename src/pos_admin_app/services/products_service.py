from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List

from pydantic import ValidationError as PydanticValidationError

from pos_admin_sdk import ApiError, ApiSession, Product, ProductWriteRequest

from ..error_presenter import api_error_details, present_api_error

DEFAULT_MIN_STOCK = 5


class StockStatus(str, Enum):
    OUT_OF_STOCK = "OUT_OF_STOCK"
    LOW_STOCK = "LOW_STOCK"
    ACTIVE = "ACTIVE"


def stock_status(product: Product) -> StockStatus:
    stock = product.stock or 0
    minimum = DEFAULT_MIN_STOCK if product.min_stock is None else product.min_stock
    if stock <= 0:
        return StockStatus.OUT_OF_STOCK
    if stock <= minimum:
        return StockStatus.LOW_STOCK
    return StockStatus.ACTIVE


@dataclass(frozen=True)
class ProductsServiceError(RuntimeError):
    message: str
    details: str | None = None

    def __str__(self) -> str:
        return self.message


class ProductsService:
    def __init__(self, session: ApiSession) -> None:
        self.session = session

    def list_products(self) -> List[Product]:
        try:
            return self.session.catalog_client().list_products().rows
        except ApiError as exc:
            raise self._normalize_error(exc) from exc

    def create_product(self, **fields) -> Product:
        request = self._request(fields)
        try:
            return self.session.catalog_client().create_product(request)
        except ApiError as exc:
            raise self._normalize_error(exc) from exc

    def update_product(self, product_id: int, **fields) -> Product:
        request = self._request(fields)
        try:
            return self.session.catalog_client().update_product(product_id, request)
        except ApiError as exc:
            raise self._normalize_error(exc) from exc

    def delete_product(self, product_id: int) -> None:
        try:
            self.session.catalog_client().delete_product(product_id)
        except ApiError as exc:
            raise self._normalize_error(exc) from exc

    @staticmethod
    def _request(fields: dict) -> ProductWriteRequest:
        values = {key: value.strip() if isinstance(value, str) else value for key, value in fields.items()}
        try:
            return ProductWriteRequest(**values)
        except PydanticValidationError as exc:
            raise ProductsServiceError(
                message="Product name is required and amounts cannot be negative.", details=str(exc)
            ) from exc

    @staticmethod
    def _normalize_error(exc: ApiError) -> ProductsServiceError:
        return ProductsServiceError(
            message=present_api_error(exc),
            details=api_error_details(exc),
        )
