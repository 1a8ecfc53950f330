from __future__ import annotations

from dataclasses import dataclass

from ..models_inventory import InventoryDetail, InventoryDetailListResponse
from ..normalizers import normalize_rows
from .base import BaseClient, expect_object

INVENTORY_DETAILS_PATH = "/inventoryDetails"


@dataclass
class InventoryDetailsClient(BaseClient):
    def list_for_product(self, product_id: int) -> InventoryDetailListResponse:
        # Stock reads must observe the backend's current state.
        data = self._request(
            "GET",
            f"{INVENTORY_DETAILS_PATH}/producto/{product_id}",
            module="inventory",
            operation="list_for_product",
            use_get_cache=False,
        )
        rows = [InventoryDetail.model_validate(row) for row in normalize_rows(data, "detalles") if isinstance(row, dict)]
        return InventoryDetailListResponse(rows=rows)

    def update_detail(self, record: InventoryDetail) -> InventoryDetail:
        if record.id is None:
            raise ValueError("Inventory detail id is required for update")
        data = self._request(
            "PUT",
            f"{INVENTORY_DETAILS_PATH}/{record.id}",
            json_body=record.model_dump(mode="json", by_alias=True, exclude_none=True),
            module="inventory",
            operation="update_detail",
            invalidate_paths=[INVENTORY_DETAILS_PATH],
        )
        if data is None:
            return record
        return InventoryDetail.model_validate(expect_object(data, "update inventory detail"))
