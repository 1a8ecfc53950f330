from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ..models_sales import SaleDetail, SaleDetailListResponse, SaleDetailWriteRequest
from ..normalizers import normalize_rows
from .base import BaseClient, expect_object
from .sales_client import _coerce_model

SALE_DETAILS_PATH = "/sellDetails"


@dataclass
class SaleDetailsClient(BaseClient):
    def create_detail(self, payload: SaleDetailWriteRequest | Mapping[str, Any]) -> SaleDetail:
        request = _coerce_model(payload, SaleDetailWriteRequest)
        data = self._request(
            "POST",
            SALE_DETAILS_PATH,
            json_body=request.model_dump(mode="json", by_alias=True),
            module="sale_details",
            operation="create_detail",
            invalidate_paths=[SALE_DETAILS_PATH],
        )
        return SaleDetail.model_validate(expect_object(data, "create sale detail"))

    def update_detail(self, detail_id: int, payload: SaleDetailWriteRequest | Mapping[str, Any]) -> SaleDetail:
        request = _coerce_model(payload, SaleDetailWriteRequest)
        data = self._request(
            "PUT",
            f"{SALE_DETAILS_PATH}/{detail_id}",
            json_body=request.model_dump(mode="json", by_alias=True),
            module="sale_details",
            operation="update_detail",
            invalidate_paths=[SALE_DETAILS_PATH],
        )
        if data is None:
            return SaleDetail.model_validate({**request.model_dump(mode="json", by_alias=True), "idDetalleVenta": detail_id})
        return SaleDetail.model_validate(expect_object(data, "update sale detail"))

    def list_for_sale(self, sale_id: int) -> SaleDetailListResponse:
        data = self._request(
            "GET",
            f"{SALE_DETAILS_PATH}/venta/{sale_id}",
            module="sale_details",
            operation="list_for_sale",
            use_get_cache=False,
        )
        return SaleDetailListResponse(rows=[SaleDetail.model_validate(row) for row in normalize_rows(data, "detalles")])
