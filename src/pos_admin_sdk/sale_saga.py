from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Callable, Iterator

from .card_resolution import CardResolver, CardSelection
from .clients.cards_client import CardsClient
from .clients.inventory_details_client import InventoryDetailsClient
from .clients.sale_details_client import SaleDetailsClient
from .clients.sales_client import SalesClient
from .exceptions import ApiError
from .models_sales import (
    PaymentMethod,
    SaleDetailWriteRequest,
    SaleKind,
    SaleStatus,
    SaleWriteRequest,
    initial_status,
)
from .sale_errors import (
    InsufficientStockError,
    InventoryDecrementError,
    SagaInProgressError,
    SaleStageError,
    failure_reason,
)
from .sale_state import SagaStage, SagaStatus, can_transition, sale_recorded
from .sale_totals import SaleTotals, compute_sale_totals
from .stock_verifier import StockVerifier
from .validation import ClientValidationError, validate_sale_inputs

if TYPE_CHECKING:
    from .session import ApiSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SaleTransactionContext:
    """Everything a single submission needs, fixed at the moment of submit."""

    branch_id: int | None
    worker_id: int | None
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

    @classmethod
    def for_create(cls, **fields) -> "SaleTransactionContext":
        fields.pop("sale_id", None)
        fields.pop("detail_id", None)
        return cls(**fields)

    @classmethod
    def for_modify(cls, *, sale_id: int, detail_id: int | None, **fields) -> "SaleTransactionContext":
        return cls(sale_id=sale_id, detail_id=detail_id, **fields)

    @property
    def is_modify(self) -> bool:
        return self.sale_id is not None

    @property
    def flight_key(self) -> tuple:
        if self.is_modify:
            return ("modify", self.branch_id, self.sale_id)
        return ("create", self.branch_id, self.worker_id, self.client_id, self.product_id)

    @property
    def totals(self) -> SaleTotals:
        return compute_sale_totals(self.quantity, self.unit_price, self.discount_pct, self.tax_pct)

    def with_card_id(self, card_id: int) -> "SaleTransactionContext":
        return replace(self, card=CardSelection.existing(card_id))


@dataclass(frozen=True)
class SaleOutcome:
    status: SagaStatus
    modifying: bool
    stages: tuple[SagaStage, ...]
    totals: SaleTotals | None = None
    sale_id: int | None = None
    detail_id: int | None = None
    card_id: int | None = None
    inventory_detail_id: int | None = None
    error: SaleStageError | None = None
    compensated: bool = False

    @property
    def ok(self) -> bool:
        return self.status is not SagaStatus.FAILED

    @property
    def failed_stage(self) -> SagaStage | None:
        return self.error.stage if self.error else None

    @property
    def available(self) -> int | None:
        return getattr(self.error, "available", None)

    @property
    def message(self) -> str | None:
        return self.error.message if self.error else None

    @property
    def recorded(self) -> bool:
        return sale_recorded(self.stages)


StageListener = Callable[[SagaStage, "SaleTransactionContext | None"], None]


@dataclass
class _Compensation:
    stage: SagaStage
    description: str
    action: Callable[[], object]


class _SagaRun:
    def __init__(self, context: SaleTransactionContext | None, listener: StageListener | None) -> None:
        self.context = context
        self.listener = listener
        self.stage = SagaStage.IDLE
        self.stages: list[SagaStage] = []
        self.compensations: list[_Compensation] = []
        self.totals: SaleTotals | None = None
        self.sale_id = context.sale_id if context else None
        self.detail_id = context.detail_id if context else None
        self.card_id: int | None = None
        self.inventory_detail_id: int | None = None

    @property
    def modifying(self) -> bool:
        return bool(self.context and self.context.is_modify)

    def advance(self, stage: SagaStage) -> None:
        if not can_transition(self.stage, stage):
            raise RuntimeError(f"Illegal sale saga transition {self.stage.value} -> {stage.value}")
        self.stage = stage
        self.stages.append(stage)
        logger.info(
            "sale_saga_stage",
            extra={"stage": stage.value, "modifying": self.modifying, "sale_id": self.sale_id},
        )
        if self.listener:
            self.listener(stage, self.context)


class SaleSaga:
    """Sequences stock check, card, header, detail and inventory writes.

    The backend offers no transaction across these resources, so every step
    is its own request. A failure is tagged with the step where it happened;
    once header and detail exist they are never rolled back by an inventory
    failure, which is reported as a warning and can be retried through
    ``repair_inventory``.
    """

    def __init__(
        self,
        *,
        sales: SalesClient,
        sale_details: SaleDetailsClient,
        inventory: InventoryDetailsClient,
        cards: CardsClient,
        compensate_on_failure: bool = False,
        listener: StageListener | None = None,
    ) -> None:
        self.sales = sales
        self.sale_details = sale_details
        self.stock_verifier = StockVerifier(inventory)
        self.card_resolver = CardResolver(cards)
        self.compensate_on_failure = compensate_on_failure
        self.listener = listener
        self._lock = threading.Lock()
        self._in_flight: set[tuple] = set()

    @classmethod
    def from_session(cls, session: "ApiSession", **kwargs) -> "SaleSaga":
        return cls(
            sales=session.sales_client(),
            sale_details=session.sale_details_client(),
            inventory=session.inventory_details_client(),
            cards=session.cards_client(),
            **kwargs,
        )

    def run(self, context: SaleTransactionContext) -> SaleOutcome:
        with self._single_flight(context.flight_key):
            return self._run(context)

    def repair_inventory(self, sale_id: int) -> SaleOutcome:
        """Re-attempt only the inventory decrement for an already recorded sale."""
        with self._single_flight(("repair", sale_id)):
            run = _SagaRun(None, self.listener)
            run.sale_id = sale_id
            try:
                run.advance(SagaStage.INVENTORY_DECREMENT)
                try:
                    details = self.sale_details.list_for_sale(sale_id)
                except (ApiError, ValueError) as exc:
                    raise InventoryDecrementError(failure_reason(exc), cause=exc) from exc
                if not details.rows:
                    raise InventoryDecrementError(f"sale {sale_id} has no line items")
                detail = details.rows[0]
                if detail.product_id is None or not detail.quantity:
                    raise InventoryDecrementError(f"sale {sale_id} line item has no product or quantity")
                run.detail_id = detail.id
                decrement = self.stock_verifier.decrement(detail.product_id, detail.quantity)
                run.inventory_detail_id = decrement.record_id
            except InventoryDecrementError as exc:
                return self._finish(run, SagaStatus.FAILED, error=exc)
            return self._finish(run, SagaStatus.COMPLETED)

    def is_in_flight(self, context: SaleTransactionContext) -> bool:
        with self._lock:
            return context.flight_key in self._in_flight

    @contextmanager
    def _single_flight(self, key: tuple) -> Iterator[None]:
        with self._lock:
            if key in self._in_flight:
                logger.warning("sale_saga_overlap_rejected", extra={"flight_key": repr(key)})
                raise SagaInProgressError(key)
            self._in_flight.add(key)
        try:
            yield
        finally:
            with self._lock:
                self._in_flight.discard(key)

    def _run(self, context: SaleTransactionContext) -> SaleOutcome:
        run = _SagaRun(context, self.listener)
        try:
            self._validate(run)
            if not context.is_modify:
                self._check_stock(run)
            if context.payment_method.requires_card:
                self._resolve_card(run)
            self._upsert_header(run)
            self._upsert_detail(run)
            if not context.is_modify:
                self._decrement_inventory(run)
        except InventoryDecrementError as exc:
            return self._finish(run, SagaStatus.COMPLETED_WITH_WARNING, error=exc)
        except SaleStageError as exc:
            compensated = self._compensate(run, exc)
            return self._finish(run, SagaStatus.FAILED, error=exc, compensated=compensated)
        return self._finish(run, SagaStatus.COMPLETED)

    def _validate(self, run: _SagaRun) -> None:
        run.advance(SagaStage.VALIDATING)
        ctx = run.context
        try:
            validate_sale_inputs(
                branch_id=ctx.branch_id,
                client_id=ctx.client_id,
                product_id=ctx.product_id,
                quantity=ctx.quantity,
                unit_price=ctx.unit_price,
                discount_pct=ctx.discount_pct,
                tax_pct=ctx.tax_pct,
                modifying=ctx.is_modify,
                detail_id=ctx.detail_id,
            )
        except ClientValidationError as exc:
            raise SaleStageError(SagaStage.VALIDATING, str(exc), cause=exc, modifying=ctx.is_modify) from exc
        run.totals = ctx.totals

    def _check_stock(self, run: _SagaRun) -> None:
        run.advance(SagaStage.STOCK_CHECK)
        ctx = run.context
        check = self.stock_verifier.verify_stock(ctx.product_id, ctx.quantity)
        if not check.ok:
            raise InsufficientStockError(available=check.available, requested=check.requested)

    def _resolve_card(self, run: _SagaRun) -> None:
        ctx = run.context
        if ctx.card is not None and ctx.card.card_id is not None:
            run.card_id = ctx.card.card_id
            return
        run.advance(SagaStage.CARD_RESOLUTION)
        try:
            card_id = self.card_resolver.resolve_card(ctx.card)
        except (ClientValidationError, ApiError, ValueError) as exc:
            raise SaleStageError(
                SagaStage.CARD_RESOLUTION, failure_reason(exc), cause=exc, modifying=ctx.is_modify
            ) from exc
        run.context = ctx.with_card_id(card_id)
        run.card_id = card_id

    def _upsert_header(self, run: _SagaRun) -> None:
        run.advance(SagaStage.HEADER_UPSERT)
        ctx = run.context
        try:
            request = _sale_request(ctx, run.totals, run.card_id)
            if ctx.is_modify:
                self.sales.update_sale(ctx.sale_id, request)
                sale_id = ctx.sale_id
            else:
                sale_id = self.sales.create_sale(request).id
        except (ApiError, ValueError) as exc:
            raise SaleStageError(
                SagaStage.HEADER_UPSERT, failure_reason(exc), cause=exc, modifying=ctx.is_modify
            ) from exc
        if sale_id is None:
            raise SaleStageError(SagaStage.HEADER_UPSERT, "sale was created without an id")
        run.sale_id = sale_id
        if not ctx.is_modify:
            cancelled = request.model_copy(update={"status": SaleStatus.CANCELLED})
            run.compensations.append(
                _Compensation(
                    stage=SagaStage.HEADER_UPSERT,
                    description="cancel sale header",
                    action=lambda: self.sales.update_sale(sale_id, cancelled),
                )
            )

    def _upsert_detail(self, run: _SagaRun) -> None:
        run.advance(SagaStage.DETAIL_UPSERT)
        ctx = run.context
        try:
            request = SaleDetailWriteRequest(
                sale_id=run.sale_id,
                product_id=ctx.product_id,
                quantity=ctx.quantity,
                unit_price=ctx.unit_price,
                subtotal=run.totals.subtotal,
            )
            if ctx.is_modify:
                self.sale_details.update_detail(ctx.detail_id, request)
                detail_id = ctx.detail_id
            else:
                detail_id = self.sale_details.create_detail(request).id
        except (ApiError, ValueError) as exc:
            raise SaleStageError(
                SagaStage.DETAIL_UPSERT, failure_reason(exc), cause=exc, modifying=ctx.is_modify
            ) from exc
        run.detail_id = detail_id

    def _decrement_inventory(self, run: _SagaRun) -> None:
        run.advance(SagaStage.INVENTORY_DECREMENT)
        ctx = run.context
        decrement = self.stock_verifier.decrement(ctx.product_id, ctx.quantity)
        run.inventory_detail_id = decrement.record_id

    def _compensate(self, run: _SagaRun, error: SaleStageError) -> bool:
        if not self.compensate_on_failure or not run.compensations:
            return False
        succeeded = True
        for compensation in reversed(run.compensations):
            try:
                compensation.action()
            except ApiError as exc:
                succeeded = False
                logger.error(
                    "sale_saga_compensation_failed",
                    extra={
                        "description": compensation.description,
                        "failed_stage": error.stage.value,
                        "sale_id": run.sale_id,
                        "error": str(exc),
                    },
                )
            else:
                logger.info(
                    "sale_saga_compensated",
                    extra={"description": compensation.description, "sale_id": run.sale_id},
                )
        return succeeded

    def _finish(
        self,
        run: _SagaRun,
        status: SagaStatus,
        *,
        error: SaleStageError | None = None,
        compensated: bool = False,
    ) -> SaleOutcome:
        run.advance(SagaStage.ERROR if error else SagaStage.DONE)
        outcome = SaleOutcome(
            status=status,
            modifying=run.modifying,
            stages=tuple(run.stages),
            totals=run.totals,
            sale_id=run.sale_id,
            detail_id=run.detail_id,
            card_id=run.card_id,
            inventory_detail_id=run.inventory_detail_id,
            error=error,
            compensated=compensated,
        )
        if error is None:
            logger.info("sale_saga_completed", extra={"sale_id": run.sale_id, "modifying": run.modifying})
        else:
            logger.warning(
                "sale_saga_stage_failed",
                extra={
                    "status": status.value,
                    "failed_stage": error.stage.value,
                    "sale_id": run.sale_id,
                    "error": error.message,
                },
            )
        return outcome


def _sale_request(ctx: SaleTransactionContext, totals: SaleTotals, card_id: int | None) -> SaleWriteRequest:
    return SaleWriteRequest(
        branch_id=ctx.branch_id,
        client_id=ctx.client_id,
        worker_id=ctx.worker_id,
        total=totals.total,
        discount=ctx.discount_pct,
        tax=ctx.tax_pct,
        payment_method=ctx.payment_method,
        sale_kind=ctx.sale_kind,
        notes=ctx.notes,
        status=ctx.status or initial_status(ctx.sale_kind),
        card_id=card_id if ctx.payment_method.requires_card else None,
    )
