from __future__ import annotations

from enum import Enum
from typing import Any, List

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

from .models_sales import PaymentMethod, Sale


class CreditStatus(str, Enum):
    ACTIVE = "ACTIVO"
    PAID = "PAGADO"
    DELINQUENT = "MOROSO"


class Credit(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: int | None = Field(
        default=None,
        validation_alias=AliasChoices("idCredito", "id"),
        serialization_alias="idCredito",
    )
    sale: Sale | None = Field(default=None, alias="venta")
    initial_amount: float = Field(default=0.0, alias="montoInicial")
    balance: float = Field(default=0.0, alias="saldo")
    interest_rate: float | None = Field(default=None, alias="tasaInteres")
    term_months: int | None = Field(default=None, alias="plazoMeses")
    status: str | None = Field(default=None, alias="estado")
    started_at: str | None = Field(default=None, alias="fechaInicio")
    due_at: str | None = Field(default=None, alias="fechaVencimiento")

    @property
    def sale_id(self) -> int | None:
        return self.sale.id if self.sale else None

    @property
    def progress_percent(self) -> float:
        """Share of the initial amount already paid back, 0 to 100."""
        if self.initial_amount <= 0:
            return 0.0
        paid = self.initial_amount - self.balance
        return max(0.0, min(100.0, paid / self.initial_amount * 100))


class CreditCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sale_id: int = Field(alias="idVenta")
    initial_amount: float = Field(alias="montoInicial", gt=0)
    interest_rate: float = Field(default=0.0, alias="tasaInteres", ge=0)
    term_months: int = Field(alias="plazoMeses", gt=0)
    notes: str = Field(default="", alias="notas")


class CreditPaymentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    credit_id: int = Field(alias="idCredito")
    amount: float = Field(alias="monto", gt=0)
    payment_method: PaymentMethod = Field(alias="metodoPago")
    notes: str = Field(default="", alias="notas")


class CreditPayment(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: int | None = Field(
        default=None,
        validation_alias=AliasChoices("idCreditoPago", "id"),
        serialization_alias="idCreditoPago",
    )
    paid_at: str | None = Field(default=None, alias="fecha")
    amount: float = Field(default=0.0, alias="monto")
    payment_method: str | None = Field(default=None, alias="metodoPago")

    @model_validator(mode="before")
    @classmethod
    def _lift_payment_method(cls, data: Any) -> Any:
        # The method lives on the nested payment record.
        if isinstance(data, dict) and "metodoPago" not in data and isinstance(data.get("pago"), dict):
            return {**data, "metodoPago": data["pago"].get("metodoPago")}
        return data


class CreditListResponse(BaseModel):
    rows: List[Credit] = Field(default_factory=list)


class CreditPaymentListResponse(BaseModel):
    rows: List[CreditPayment] = Field(default_factory=list)
