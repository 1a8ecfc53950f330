from __future__ import annotations

from enum import Enum
from typing import List

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from .models import Client


class PaymentMethod(str, Enum):
    CASH = "EFECTIVO"
    CARD = "TARJETA"
    TRANSFER = "TRANSFERENCIA"

    @property
    def requires_card(self) -> bool:
        return self is PaymentMethod.CARD


class SaleKind(str, Enum):
    CASH = "CASH"
    CREDIT = "CREDIT"


class SaleStatus(str, Enum):
    PAID = "PAID"
    PENDING = "PENDING"
    CANCELLED = "CANCELLED"


def initial_status(kind: SaleKind) -> SaleStatus:
    return SaleStatus.PENDING if kind is SaleKind.CREDIT else SaleStatus.PAID


class SaleWriteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    branch_id: int = Field(alias="idSucursal")
    client_id: int = Field(alias="idCliente")
    worker_id: int | None = Field(default=None, alias="idTrabajador")
    total: float = Field(alias="totalVenta")
    discount: float = Field(default=0.0, alias="descuento")
    tax: float = Field(default=0.0, alias="impuesto")
    payment_method: PaymentMethod = Field(alias="metodoPago")
    sale_kind: SaleKind = Field(alias="tipoVenta")
    notes: str = Field(default="", alias="notas")
    status: SaleStatus = Field(alias="estado")
    card_id: int | None = Field(default=None, alias="idTarjeta")


class Sale(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: int | None = Field(
        default=None,
        validation_alias=AliasChoices("idVenta", "id"),
        serialization_alias="idVenta",
    )
    branch_id: int | None = Field(default=None, alias="idSucursal")
    client_id: int | None = Field(default=None, alias="idCliente")
    worker_id: int | None = Field(default=None, alias="idTrabajador")
    total: float | None = Field(
        default=None,
        validation_alias=AliasChoices("totalVenta", "total"),
        serialization_alias="totalVenta",
    )
    discount: float | None = Field(default=None, alias="descuento")
    tax: float | None = Field(default=None, alias="impuesto")
    payment_method: str | None = Field(default=None, alias="metodoPago")
    sale_kind: str | None = Field(default=None, alias="tipoVenta")
    notes: str | None = Field(default=None, alias="notas")
    status: str | None = Field(default=None, alias="estado")
    card_id: int | None = Field(default=None, alias="idTarjeta")
    created_at: str | None = Field(default=None, alias="fecha")
    client: Client | None = Field(default=None, alias="cliente")


class SaleDetailWriteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sale_id: int = Field(alias="idVenta")
    product_id: int = Field(alias="idProducto")
    quantity: int = Field(alias="cantidad", gt=0)
    unit_price: float = Field(alias="precio", ge=0)
    subtotal: float


class SaleDetail(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: int | None = Field(
        default=None,
        validation_alias=AliasChoices("idDetalleVenta", "id"),
        serialization_alias="idDetalleVenta",
    )
    sale_id: int | None = Field(default=None, alias="idVenta")
    product_id: int | None = Field(default=None, alias="idProducto")
    quantity: int | None = Field(default=None, alias="cantidad")
    unit_price: float | None = Field(default=None, alias="precio")
    subtotal: float | None = None


class SaleListResponse(BaseModel):
    rows: List[Sale] = Field(default_factory=list)


class SaleDetailListResponse(BaseModel):
    rows: List[SaleDetail] = Field(default_factory=list)
