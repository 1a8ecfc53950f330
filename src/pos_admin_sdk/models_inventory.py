from __future__ import annotations

from typing import Any, List

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .normalizers import to_quantity


class InventoryDetail(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: int | None = Field(
        default=None,
        validation_alias=AliasChoices("idDetalleInventario", "id"),
        serialization_alias="idDetalleInventario",
    )
    inventory_id: int | None = Field(default=None, alias="idInventario")
    product_id: int | None = Field(default=None, alias="idProducto")
    quantity: int = Field(default=0, alias="cantidad")
    condition: str | None = Field(default=None, alias="estado")
    available: bool | None = Field(default=None, alias="disponible")

    @field_validator("quantity", mode="before")
    @classmethod
    def _coerce_quantity(cls, value: Any) -> int:
        return to_quantity(value)

    def with_quantity(self, quantity: int) -> "InventoryDetail":
        return self.model_copy(update={"quantity": quantity, "available": quantity > 0})


class InventoryDetailListResponse(BaseModel):
    rows: List[InventoryDetail] = Field(default_factory=list)

    @property
    def total_quantity(self) -> int:
        return sum(row.quantity for row in self.rows)
