from __future__ import annotations

from enum import Enum


class SagaStage(str, Enum):
    IDLE = "IDLE"
    VALIDATING = "VALIDATING"
    STOCK_CHECK = "STOCK_CHECK"
    CARD_RESOLUTION = "CARD_RESOLUTION"
    HEADER_UPSERT = "HEADER_UPSERT"
    DETAIL_UPSERT = "DETAIL_UPSERT"
    INVENTORY_DECREMENT = "INVENTORY_DECREMENT"
    DONE = "DONE"
    ERROR = "ERROR"


class SagaStatus(str, Enum):
    COMPLETED = "COMPLETED"
    COMPLETED_WITH_WARNING = "COMPLETED_WITH_WARNING"
    FAILED = "FAILED"


_TRANSITIONS: dict[SagaStage, frozenset[SagaStage]] = {
    SagaStage.IDLE: frozenset({SagaStage.VALIDATING, SagaStage.INVENTORY_DECREMENT}),
    SagaStage.VALIDATING: frozenset(
        {SagaStage.STOCK_CHECK, SagaStage.CARD_RESOLUTION, SagaStage.HEADER_UPSERT}
    ),
    SagaStage.STOCK_CHECK: frozenset({SagaStage.CARD_RESOLUTION, SagaStage.HEADER_UPSERT}),
    SagaStage.CARD_RESOLUTION: frozenset({SagaStage.HEADER_UPSERT}),
    SagaStage.HEADER_UPSERT: frozenset({SagaStage.DETAIL_UPSERT}),
    SagaStage.DETAIL_UPSERT: frozenset({SagaStage.INVENTORY_DECREMENT, SagaStage.DONE}),
    SagaStage.INVENTORY_DECREMENT: frozenset({SagaStage.DONE}),
    SagaStage.DONE: frozenset(),
    SagaStage.ERROR: frozenset(),
}


def can_transition(current: SagaStage, target: SagaStage) -> bool:
    if target is SagaStage.ERROR:
        return current not in {SagaStage.DONE, SagaStage.ERROR}
    return target in _TRANSITIONS[current]


def sale_recorded(stages: tuple[SagaStage, ...] | list[SagaStage]) -> bool:
    """True once both header and detail have been persisted."""
    return SagaStage.INVENTORY_DECREMENT in stages or SagaStage.DONE in stages
