from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import List

from pos_admin_sdk import (
    ApiError,
    ApiSession,
    CardSelection,
    Client,
    PaymentMethod,
    Product,
    SagaInProgressError,
    Sale,
    SaleDetail,
    SaleKind,
    SaleOutcome,
    SaleSaga,
    SaleStatus,
    SaleTransactionContext,
    WorkerProfile,
)

from ..error_presenter import api_error_details, present_api_error, present_outcome, present_repair_outcome
from ..telemetry import TelemetryLogger, sale_event

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SalesServiceError(RuntimeError):
    message: str
    details: str | None = None

    def __str__(self) -> str:
        return self.message


@dataclass
class SaleForm:
    """Field values of the sale form as entered by the clerk."""

    client_id: int | None
    product_id: int | None
    quantity: int
    unit_price: float
    discount_pct: float = 0.0
    tax_pct: float = 0.0
    notes: str = ""
    payment_method: PaymentMethod = PaymentMethod.CASH
    sale_kind: SaleKind = SaleKind.CASH
    card: CardSelection | None = None
    sale_id: int | None = None
    detail_id: int | None = None
    status: SaleStatus | None = None

    @property
    def modifying(self) -> bool:
        return self.sale_id is not None

    def to_context(self, *, branch_id: int | None, worker_id: int | None) -> SaleTransactionContext:
        fields = dict(
            branch_id=branch_id,
            worker_id=worker_id,
            client_id=self.client_id,
            product_id=self.product_id,
            quantity=self.quantity,
            unit_price=self.unit_price,
            discount_pct=self.discount_pct,
            tax_pct=self.tax_pct,
            notes=self.notes,
            payment_method=PaymentMethod(self.payment_method),
            sale_kind=SaleKind(self.sale_kind),
            card=self.card,
        )
        if self.modifying:
            return SaleTransactionContext.for_modify(
                sale_id=self.sale_id,
                detail_id=self.detail_id,
                status=self.status,
                **fields,
            )
        return SaleTransactionContext.for_create(**fields)


@dataclass(frozen=True)
class SaleEditDraft:
    sale: Sale
    detail: SaleDetail
    form: SaleForm


@dataclass(frozen=True)
class SaleSubmissionResult:
    outcome: SaleOutcome
    message: str
    sales: List[Sale] | None = None

    @property
    def ok(self) -> bool:
        return self.outcome.ok

    @property
    def warning(self) -> bool:
        return self.outcome.ok and self.outcome.error is not None


@dataclass(frozen=True)
class Catalog:
    clients: List[Client] = field(default_factory=list)
    products: List[Product] = field(default_factory=list)


class SalesService:
    def __init__(
        self,
        session: ApiSession,
        *,
        telemetry: TelemetryLogger | None = None,
        compensate_on_failure: bool = False,
    ) -> None:
        self.session = session
        self.telemetry = telemetry
        self.compensate_on_failure = compensate_on_failure
        self.editing: SaleEditDraft | None = None
        self._saga: SaleSaga | None = None
        self._saga_context: int | None = None

    def saga(self) -> SaleSaga:
        # Resource clients are bound to the branch context they were built in.
        version = self.session.context_version()
        if self._saga is None or self._saga_context != version:
            self._saga = SaleSaga.from_session(self.session, compensate_on_failure=self.compensate_on_failure)
            self._saga_context = version
        return self._saga

    def record_sale(self, form: SaleForm) -> SaleSubmissionResult:
        profile = self._profile()
        branch_id = self._branch_id(profile)
        context = form.to_context(branch_id=branch_id, worker_id=profile.id)
        started = time.monotonic()
        try:
            outcome = self.saga().run(context)
        except SagaInProgressError as exc:
            raise SalesServiceError(message="A sale submission is already in progress.") from exc
        self._emit_outcome(
            "modify" if context.is_modify else "create",
            outcome,
            started,
            flight_key=context.flight_key,
            branch_id=branch_id,
        )
        message = present_outcome(outcome)
        if not outcome.ok:
            return SaleSubmissionResult(outcome=outcome, message=message)
        self.editing = None
        return SaleSubmissionResult(outcome=outcome, message=message, sales=self._reload_sales(branch_id))

    def open_for_edit(self, sale_id: int) -> SaleEditDraft:
        branch_id = self._branch_id()
        try:
            sales = self.session.sales_client().list_sales_for_branch(branch_id).rows
            sale = next((row for row in sales if row.id == sale_id), None)
            if sale is None:
                raise SalesServiceError(message=f"Sale {sale_id} was not found for this branch.")
            details = self.session.sale_details_client().list_for_sale(sale_id).rows
        except ApiError as exc:
            raise self._normalize_error(exc) from exc
        if not details:
            raise SalesServiceError(message=f"Sale {sale_id} has no line items.")
        detail = details[0]
        draft = SaleEditDraft(sale=sale, detail=detail, form=_form_from_sale(sale, detail))
        self.editing = draft
        logger.info("sale_opened_for_edit", extra={"sale_id": sale_id, "detail_id": detail.id})
        return draft

    def cancel_edit(self) -> None:
        self.editing = None

    def list_sales(self, *, use_cache: bool = True) -> List[Sale]:
        branch_id = self._branch_id()
        try:
            return self.session.sales_client().list_sales_for_branch(branch_id, use_cache=use_cache).rows
        except ApiError as exc:
            raise self._normalize_error(exc) from exc

    def repair_inventory(self, sale_id: int) -> SaleSubmissionResult:
        started = time.monotonic()
        try:
            outcome = self.saga().repair_inventory(sale_id)
        except SagaInProgressError as exc:
            raise SalesServiceError(message=f"Inventory repair for sale {sale_id} is already running.") from exc
        self._emit_outcome(
            "repair", outcome, started, flight_key=("repair", sale_id), branch_id=self.session.branch_id
        )
        return SaleSubmissionResult(outcome=outcome, message=present_repair_outcome(outcome))

    def load_catalog(self) -> Catalog:
        catalog = self.session.catalog_client()
        try:
            clients = catalog.list_clients().rows
            products = catalog.list_products().rows
        except ApiError as exc:
            raise self._normalize_error(exc) from exc
        return Catalog(clients=clients, products=products)

    def _profile(self) -> WorkerProfile:
        try:
            return self.session.profile_provider().get_profile()
        except (ApiError, ValueError) as exc:
            raise self._normalize_error(exc) from exc

    def _branch_id(self, profile: WorkerProfile | None = None) -> int:
        if self.session.branch_id is not None:
            return self.session.branch_id
        profile = profile or self._profile()
        if profile.branch_id is None:
            raise SalesServiceError(message="Branch is not defined for the current session.")
        return profile.branch_id

    def _reload_sales(self, branch_id: int) -> List[Sale] | None:
        try:
            return self.session.sales_client().list_sales_for_branch(branch_id, use_cache=False).rows
        except ApiError as exc:
            logger.warning("sales_reload_failed", extra={"branch_id": branch_id, "error": str(exc)})
            return None

    def _emit_outcome(
        self,
        action: str,
        outcome: SaleOutcome,
        started: float,
        *,
        flight_key: tuple,
        branch_id: int | None,
    ) -> None:
        if self.telemetry is None:
            return
        duration_ms = int((time.monotonic() - started) * 1000)
        self.telemetry.emit(
            sale_event(outcome, action=action, flight_key=flight_key, branch_id=branch_id, duration_ms=duration_ms)
        )

    @staticmethod
    def _normalize_error(exc: Exception) -> SalesServiceError:
        if isinstance(exc, SalesServiceError):
            return exc
        if isinstance(exc, ApiError):
            return SalesServiceError(
                message=present_api_error(exc),
                details=api_error_details(exc),
            )
        return SalesServiceError(message=str(exc) or "Sales client error")


def _form_from_sale(sale: Sale, detail: SaleDetail) -> SaleForm:
    try:
        payment_method = PaymentMethod(sale.payment_method)
    except ValueError:
        payment_method = PaymentMethod.CASH
    try:
        sale_kind = SaleKind(sale.sale_kind)
    except ValueError:
        sale_kind = SaleKind.CASH
    try:
        status = SaleStatus(sale.status) if sale.status else None
    except ValueError:
        status = None
    return SaleForm(
        client_id=sale.client_id,
        product_id=detail.product_id,
        quantity=detail.quantity or 0,
        unit_price=detail.unit_price or 0.0,
        discount_pct=sale.discount or 0.0,
        tax_pct=sale.tax or 0.0,
        notes=sale.notes or "",
        payment_method=payment_method,
        sale_kind=sale_kind,
        card=CardSelection.existing(sale.card_id) if sale.card_id is not None else None,
        sale_id=sale.id,
        detail_id=detail.id,
        status=status,
    )
