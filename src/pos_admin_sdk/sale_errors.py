from __future__ import annotations

from .exceptions import ApiError
from .sale_state import SagaStage


class SaleStageError(Exception):
    """A saga failure attributed to the step where it happened."""

    def __init__(
        self,
        stage: SagaStage,
        message: str,
        *,
        cause: BaseException | None = None,
        modifying: bool = False,
    ) -> None:
        self.stage = stage
        self.message = message
        self.cause = cause
        self.modifying = modifying
        super().__init__(f"{stage.value}: {message}")


class StockVerificationError(SaleStageError):
    """Inventory could not be read, so stock was not verified."""

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        super().__init__(SagaStage.STOCK_CHECK, message, cause=cause)


class InsufficientStockError(SaleStageError):
    def __init__(self, available: int, requested: int) -> None:
        self.available = available
        self.requested = requested
        super().__init__(
            SagaStage.STOCK_CHECK,
            f"insufficient stock: requested {requested}, available {available}",
        )


class InventoryDecrementError(SaleStageError):
    """Sale and detail are persisted but no stock record was decremented."""

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        super().__init__(SagaStage.INVENTORY_DECREMENT, message, cause=cause)


class SagaInProgressError(RuntimeError):
    def __init__(self, flight_key: tuple) -> None:
        self.flight_key = flight_key
        super().__init__(f"A submission for {flight_key!r} is already in progress")


def failure_reason(exc: BaseException) -> str:
    if isinstance(exc, ApiError):
        return exc.message
    return str(exc) or type(exc).__name__
