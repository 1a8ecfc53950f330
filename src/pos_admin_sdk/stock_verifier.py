from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from .clients.inventory_details_client import InventoryDetailsClient
from .exceptions import ApiError
from .models_inventory import InventoryDetail
from .sale_errors import InventoryDecrementError, StockVerificationError, failure_reason

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StockCheck:
    ok: bool
    available: int
    requested: int


@dataclass(frozen=True)
class InventoryDecrement:
    record_id: int | None
    previous_quantity: int
    new_quantity: int
    record: InventoryDetail


def select_decrement_target(records: Sequence[InventoryDetail], requested_qty: int) -> InventoryDetail:
    """Pick the first record with stock on hand.

    A sale is never split across records: if the chosen record cannot cover
    the requested quantity the decrement fails instead.
    """
    target = next((record for record in records if record.quantity > 0), None)
    if target is None:
        raise InventoryDecrementError("no inventory record with available stock")
    if target.quantity < requested_qty:
        raise InventoryDecrementError(
            f"inventory record {target.id} has {target.quantity} units, {requested_qty} requested"
        )
    return target


@dataclass
class StockVerifier:
    inventory: InventoryDetailsClient

    def verify_stock(self, product_id: int, requested_qty: int) -> StockCheck:
        try:
            listing = self.inventory.list_for_product(product_id)
        except (ApiError, ValueError) as exc:
            logger.warning("stock_check_unavailable", extra={"product_id": product_id, "error": str(exc)})
            raise StockVerificationError(failure_reason(exc), cause=exc) from exc
        available = listing.total_quantity
        check = StockCheck(ok=available >= requested_qty, available=available, requested=requested_qty)
        if not check.ok:
            logger.info(
                "stock_check_insufficient",
                extra={"product_id": product_id, "available": available, "requested": requested_qty},
            )
        return check

    def decrement(self, product_id: int, requested_qty: int) -> InventoryDecrement:
        try:
            listing = self.inventory.list_for_product(product_id)
        except (ApiError, ValueError) as exc:
            raise InventoryDecrementError(failure_reason(exc), cause=exc) from exc
        target = select_decrement_target(listing.rows, requested_qty)
        updated = target.with_quantity(target.quantity - requested_qty)
        try:
            self.inventory.update_detail(updated)
        except (ApiError, ValueError) as exc:
            raise InventoryDecrementError(failure_reason(exc), cause=exc) from exc
        logger.info(
            "inventory_decremented",
            extra={"product_id": product_id, "record_id": target.id, "new_quantity": updated.quantity},
        )
        return InventoryDecrement(
            record_id=target.id,
            previous_quantity=target.quantity,
            new_quantity=updated.quantity,
            record=updated,
        )
