from __future__ import annotations

from pos_admin_sdk import (
    ApiError,
    ClientValidationError,
    InsufficientStockError,
    RequestCancelledError,
    SagaStage,
    SagaStatus,
    SaleOutcome,
    SaleStageError,
    SessionExpiredError,
)

SESSION_EXPIRED_MESSAGE = "Your session has expired. Please sign in again."
BRANCH_CHANGED_MESSAGE = "The branch changed while the request was running. Reload and try again."

_CARD_FIELD_MESSAGES = {
    "card": "Select an existing card or enter a new one.",
    "card.name": "Card name must have at least 3 characters.",
    "card.number": "Card number must be exactly 4 digits.",
    "card.card_type": "Select a card type.",
}

_FIELD_MESSAGES = {
    "client_product": "Select a client and a product.",
    "branch_id": "Branch is not defined for the current session.",
    "quantity": "Quantity must be a positive whole number.",
    "unit_price": "Unit price cannot be negative.",
    "discount": "Discount must be between 0 and 100.",
    "tax": "Tax must be between 0 and 100.",
    "detail_id": "The sale being edited has no line item to update.",
    **_CARD_FIELD_MESSAGES,
}


def present_validation_error(exc: ClientValidationError) -> str:
    if not exc.issues:
        return "Check the form and try again."
    issue = exc.issues[0]
    return _FIELD_MESSAGES.get(issue.field, issue.reason)


def present_api_error(exc: ApiError) -> str:
    if isinstance(exc, SessionExpiredError):
        return SESSION_EXPIRED_MESSAGE
    if isinstance(exc, RequestCancelledError):
        return BRANCH_CHANGED_MESSAGE
    return exc.message.strip() or f"Status {exc.status_code}"


def api_error_details(exc: ApiError) -> str:
    """Technical line kept next to the clerk-facing message."""
    details = f"{exc.code} (HTTP {exc.status_code})"
    if exc.operation:
        details = f"{details} in {exc.operation}"
    if exc.details:
        details = f"{details}: {exc.details}"
    return details


def present_stage_error(error: SaleStageError, *, compensated: bool = False) -> str:
    """Map a stage-tagged saga failure to the message shown to the clerk."""
    cause = error.cause
    if isinstance(cause, SessionExpiredError):
        return SESSION_EXPIRED_MESSAGE
    if isinstance(cause, ClientValidationError):
        return present_validation_error(cause)
    stage = error.stage
    if stage is SagaStage.STOCK_CHECK:
        if isinstance(error, InsufficientStockError):
            return f"Insufficient stock: only {error.available} available."
        return f"Could not verify stock: {error.message}"
    if stage is SagaStage.CARD_RESOLUTION:
        return f"Error registering card: {error.message}"
    if stage is SagaStage.HEADER_UPSERT:
        verb = "updating" if error.modifying else "creating"
        return f"Error {verb} sale: {error.message}"
    if stage is SagaStage.DETAIL_UPSERT:
        verb = "updating" if error.modifying else "creating"
        message = f"Error {verb} sale detail: {error.message}"
        if compensated:
            message = f"{message} The sale was cancelled."
        return message
    if stage is SagaStage.INVENTORY_DECREMENT:
        return f"Sale recorded, but inventory was not updated: {error.message}"
    return error.message


def present_outcome(outcome: SaleOutcome) -> str:
    if outcome.status is SagaStatus.COMPLETED:
        return "Sale updated successfully." if outcome.modifying else "Sale recorded successfully."
    return present_stage_error(outcome.error, compensated=outcome.compensated)


def present_repair_outcome(outcome: SaleOutcome) -> str:
    if outcome.status is SagaStatus.COMPLETED:
        return f"Inventory updated for sale {outcome.sale_id}."
    return f"Inventory could not be updated: {outcome.message}"
