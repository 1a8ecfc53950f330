from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Sequence

from pydantic import ValidationError as PydanticValidationError

from pos_admin_sdk import (
    ApiError,
    ApiSession,
    Credit,
    CreditCreateRequest,
    CreditPayment,
    CreditPaymentRequest,
    CreditStatus,
    PaymentMethod,
    SaleKind,
    SaleStatus,
)

from ..error_presenter import api_error_details, present_api_error

logger = logging.getLogger(__name__)

BALANCE_EXCEEDED_MESSAGE = "Payment cannot exceed the outstanding balance."


@dataclass(frozen=True)
class CreditsServiceError(RuntimeError):
    message: str
    details: str | None = None

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class CreditSummary:
    active_balance: float
    delinquent_balance: float
    paid_count: int


def summarize_credits(credits: Sequence[Credit]) -> CreditSummary:
    return CreditSummary(
        active_balance=round(sum(c.balance for c in credits if c.status == CreditStatus.ACTIVE.value), 2),
        delinquent_balance=round(sum(c.balance for c in credits if c.status == CreditStatus.DELINQUENT.value), 2),
        paid_count=sum(1 for c in credits if c.status == CreditStatus.PAID.value),
    )


class CreditsService:
    """Credit accounts opened against pending credit sales, and their payments."""

    def __init__(self, session: ApiSession) -> None:
        self.session = session

    def list_credits(self, *, status: CreditStatus | None = None, use_cache: bool = True) -> List[Credit]:
        branch_id = self._branch_id()
        try:
            rows = self.session.credits_client().list_for_branch(branch_id, use_cache=use_cache).rows
        except ApiError as exc:
            raise self._normalize_error(exc) from exc
        if status is not None:
            rows = [row for row in rows if row.status == status.value]
        return rows

    def open_credit_for_sale(
        self,
        sale_id: int,
        *,
        term_months: int,
        interest_rate: float = 0.0,
        amount: float | None = None,
        notes: str = "",
    ) -> Credit:
        branch_id = self._branch_id()
        try:
            sales = self.session.sales_client().list_sales_for_branch(branch_id, use_cache=False).rows
        except ApiError as exc:
            raise self._normalize_error(exc) from exc
        sale = next((row for row in sales if row.id == sale_id), None)
        if sale is None:
            raise CreditsServiceError(message=f"Sale {sale_id} was not found for this branch.")
        if sale.sale_kind != SaleKind.CREDIT.value or sale.status != SaleStatus.PENDING.value:
            raise CreditsServiceError(message=f"Sale {sale_id} is not a pending credit sale.")
        try:
            request = CreditCreateRequest(
                sale_id=sale_id,
                initial_amount=sale.total if amount is None else amount,
                interest_rate=interest_rate,
                term_months=term_months,
                notes=notes.strip(),
            )
        except PydanticValidationError as exc:
            raise CreditsServiceError(
                message="Credit amount and term must be positive.", details=str(exc)
            ) from exc
        try:
            credit = self.session.credits_client().create_credit(request)
        except ApiError as exc:
            raise self._normalize_error(exc) from exc
        logger.info("credit_opened", extra={"sale_id": sale_id, "credit_id": credit.id})
        return credit

    def record_payment(
        self,
        credit_id: int,
        amount: float,
        *,
        payment_method: PaymentMethod = PaymentMethod.CASH,
        notes: str = "",
    ) -> CreditPayment:
        if amount <= 0:
            raise CreditsServiceError(message="Payment amount must be greater than zero.")
        client = self.session.credits_client()
        try:
            credit = client.get_credit(credit_id)
        except ApiError as exc:
            raise self._normalize_error(exc) from exc
        if credit.status == CreditStatus.PAID.value or credit.balance <= 0:
            raise CreditsServiceError(message=f"Credit {credit_id} is already paid off.")
        if amount > credit.balance:
            raise CreditsServiceError(
                message=BALANCE_EXCEEDED_MESSAGE,
                details=f"balance={credit.balance:.2f} amount={amount:.2f}",
            )
        request = CreditPaymentRequest(
            credit_id=credit_id,
            amount=amount,
            payment_method=payment_method,
            notes=notes.strip(),
        )
        try:
            payment = client.record_payment(request)
        except ApiError as exc:
            raise self._normalize_error(exc) from exc
        logger.info(
            "credit_payment_recorded",
            extra={"credit_id": credit_id, "remaining": round(credit.balance - amount, 2)},
        )
        return payment

    def list_payments(self, credit_id: int) -> List[CreditPayment]:
        try:
            return self.session.credits_client().list_payments(credit_id).rows
        except ApiError as exc:
            raise self._normalize_error(exc) from exc

    def _branch_id(self) -> int:
        if self.session.branch_id is None:
            raise CreditsServiceError(message="Branch is not defined for the current session.")
        return self.session.branch_id

    @staticmethod
    def _normalize_error(exc: ApiError) -> CreditsServiceError:
        return CreditsServiceError(
            message=present_api_error(exc),
            details=api_error_details(exc),
        )
