from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ..models import (
    Client,
    ClientListResponse,
    ClientWriteRequest,
    Product,
    ProductListResponse,
    ProductWriteRequest,
)
from ..normalizers import normalize_rows
from .base import BaseClient, expect_object
from .sales_client import _coerce_model

CLIENTS_PATH = "/client"
PRODUCTS_PATH = "/product"


@dataclass
class CatalogClient(BaseClient):
    def list_clients(self) -> ClientListResponse:
        data = self._request("GET", CLIENTS_PATH, module="catalog", operation="list_clients")
        return ClientListResponse(rows=[Client.model_validate(row) for row in normalize_rows(data, "clients")])

    def create_client(self, payload: ClientWriteRequest | Mapping[str, Any]) -> Client:
        request = _coerce_model(payload, ClientWriteRequest)
        data = self._request(
            "POST",
            CLIENTS_PATH,
            json_body=request.model_dump(mode="json", by_alias=True),
            module="catalog",
            operation="create_client",
            invalidate_paths=[CLIENTS_PATH],
        )
        return Client.model_validate(expect_object(data, "create client"))

    def update_client(self, client_id: int, payload: ClientWriteRequest | Mapping[str, Any]) -> Client:
        request = _coerce_model(payload, ClientWriteRequest)
        data = self._request(
            "PUT",
            f"{CLIENTS_PATH}/{client_id}",
            json_body=request.model_dump(mode="json", by_alias=True),
            module="catalog",
            operation="update_client",
            invalidate_paths=[CLIENTS_PATH],
        )
        return Client.model_validate(expect_object(data, "update client"))

    def list_products(self) -> ProductListResponse:
        data = self._request("GET", PRODUCTS_PATH, module="catalog", operation="list_products")
        return ProductListResponse(rows=[Product.model_validate(row) for row in normalize_rows(data, "products")])

    def create_product(self, payload: ProductWriteRequest | Mapping[str, Any]) -> Product:
        request = _coerce_model(payload, ProductWriteRequest)
        data = self._request(
            "POST",
            PRODUCTS_PATH,
            json_body=request.model_dump(mode="json", by_alias=True),
            module="catalog",
            operation="create_product",
            invalidate_paths=[PRODUCTS_PATH],
        )
        return Product.model_validate(expect_object(data, "create product"))

    def update_product(self, product_id: int, payload: ProductWriteRequest | Mapping[str, Any]) -> Product:
        request = _coerce_model(payload, ProductWriteRequest)
        data = self._request(
            "PUT",
            f"{PRODUCTS_PATH}/{product_id}",
            json_body=request.model_dump(mode="json", by_alias=True),
            module="catalog",
            operation="update_product",
            invalidate_paths=[PRODUCTS_PATH],
        )
        if data is None:
            return Product.model_validate({**request.model_dump(mode="json", by_alias=True), "idProducto": product_id})
        return Product.model_validate(expect_object(data, "update product"))

    def delete_product(self, product_id: int) -> None:
        self._request(
            "DELETE",
            f"{PRODUCTS_PATH}/{product_id}",
            module="catalog",
            operation="delete_product",
            invalidate_paths=[PRODUCTS_PATH],
        )
