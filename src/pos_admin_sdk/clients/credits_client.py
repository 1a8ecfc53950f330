from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ..models_credits import (
    Credit,
    CreditCreateRequest,
    CreditListResponse,
    CreditPayment,
    CreditPaymentListResponse,
    CreditPaymentRequest,
)
from ..normalizers import normalize_rows
from .base import BaseClient, expect_object
from .sales_client import SALES_PATH, _coerce_model

CREDITS_PATH = "/credito"
CREDIT_PAYMENTS_PATH = "/credito-pagos"


@dataclass
class CreditsClient(BaseClient):
    def list_for_branch(self, branch_id: int, *, use_cache: bool = True) -> CreditListResponse:
        data = self._request(
            "GET",
            f"{CREDITS_PATH}/sucursal/{branch_id}",
            module="credits",
            operation="list_credits",
            use_get_cache=use_cache,
        )
        return CreditListResponse(rows=[Credit.model_validate(row) for row in normalize_rows(data, "creditos")])

    def get_credit(self, credit_id: int) -> Credit:
        data = self._request(
            "GET",
            f"{CREDITS_PATH}/{credit_id}",
            module="credits",
            operation="get_credit",
            use_get_cache=False,
        )
        return Credit.model_validate(expect_object(data, "credit"))

    def create_credit(self, payload: CreditCreateRequest | Mapping[str, Any]) -> Credit:
        request = _coerce_model(payload, CreditCreateRequest)
        data = self._request(
            "POST",
            CREDITS_PATH,
            json_body=request.model_dump(mode="json", by_alias=True),
            module="credits",
            operation="create_credit",
            invalidate_paths=[CREDITS_PATH, SALES_PATH],
        )
        return Credit.model_validate(expect_object(data, "create credit"))

    def record_payment(self, payload: CreditPaymentRequest | Mapping[str, Any]) -> CreditPayment:
        request = _coerce_model(payload, CreditPaymentRequest)
        data = self._request(
            "POST",
            f"{CREDITS_PATH}/pago",
            json_body=request.model_dump(mode="json", by_alias=True),
            module="credits",
            operation="record_payment",
            invalidate_paths=[CREDITS_PATH, CREDIT_PAYMENTS_PATH],
        )
        if data is None:
            return CreditPayment.model_validate(request.model_dump(mode="json", by_alias=True))
        return CreditPayment.model_validate(expect_object(data, "credit payment"))

    def list_payments(self, credit_id: int) -> CreditPaymentListResponse:
        data = self._request(
            "GET",
            f"{CREDIT_PAYMENTS_PATH}/credito/{credit_id}",
            module="credits",
            operation="list_payments",
            use_get_cache=False,
        )
        rows = normalize_rows(data, "creditosPagos", "pagos")
        return CreditPaymentListResponse(rows=[CreditPayment.model_validate(row) for row in rows])
