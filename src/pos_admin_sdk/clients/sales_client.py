from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ..models_sales import Sale, SaleListResponse, SaleWriteRequest
from ..normalizers import normalize_rows
from .base import BaseClient, expect_object

SALES_PATH = "/sell"


@dataclass
class SalesClient(BaseClient):
    def create_sale(self, payload: SaleWriteRequest | Mapping[str, Any]) -> Sale:
        request = _coerce_model(payload, SaleWriteRequest)
        data = self._request(
            "POST",
            SALES_PATH,
            json_body=request.model_dump(mode="json", by_alias=True, exclude_none=True),
            module="sales",
            operation="create_sale",
            invalidate_paths=[SALES_PATH],
        )
        return Sale.model_validate(expect_object(data, "create sale"))

    def update_sale(self, sale_id: int, payload: SaleWriteRequest | Mapping[str, Any]) -> Sale:
        request = _coerce_model(payload, SaleWriteRequest)
        data = self._request(
            "PUT",
            f"{SALES_PATH}/{sale_id}",
            json_body=request.model_dump(mode="json", by_alias=True, exclude_none=True),
            module="sales",
            operation="update_sale",
            invalidate_paths=[SALES_PATH],
        )
        if data is None:
            return Sale.model_validate({**request.model_dump(mode="json", by_alias=True), "idVenta": sale_id})
        return Sale.model_validate(expect_object(data, "update sale"))

    def list_sales_for_branch(self, branch_id: int, *, use_cache: bool = True) -> SaleListResponse:
        data = self._request(
            "GET",
            f"{SALES_PATH}/sucursal/{branch_id}",
            module="sales",
            operation="list_sales",
            use_get_cache=use_cache,
        )
        return SaleListResponse(rows=[Sale.model_validate(row) for row in normalize_rows(data, "ventas")])


def _coerce_model(value: Any, model_type: type[Any]):
    if isinstance(value, model_type):
        return value
    return model_type.model_validate(value)
