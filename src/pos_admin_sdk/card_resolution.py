from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from .clients.cards_client import CardsClient
from .models_cards import CardCreateRequest
from .validation import ClientValidationError, ValidationIssue

logger = logging.getLogger(__name__)

# The card form only captures the last four digits.
_CARD_TOKEN_RE = re.compile(r"^\d{4}$")
MIN_CARD_NAME_LENGTH = 3


@dataclass(frozen=True)
class CardSelection:
    """Either an existing card id or the inline fields for a new card."""

    card_id: int | None = None
    name: str = ""
    number: str = ""
    card_type: str = ""

    @classmethod
    def existing(cls, card_id: int) -> "CardSelection":
        return cls(card_id=card_id)


def validate_card_selection(selection: CardSelection) -> CardCreateRequest:
    issues: list[ValidationIssue] = []
    name = (selection.name or "").strip()
    number = (selection.number or "").replace(" ", "")
    card_type = (selection.card_type or "").strip().upper()
    if len(name) < MIN_CARD_NAME_LENGTH:
        issues.append(
            ValidationIssue(
                field="card.name",
                reason=f"card name must have at least {MIN_CARD_NAME_LENGTH} characters",
            )
        )
    if not _CARD_TOKEN_RE.match(number):
        issues.append(ValidationIssue(field="card.number", reason="card number must be exactly 4 digits"))
    if not card_type:
        issues.append(ValidationIssue(field="card.card_type", reason="card type is required"))
    if issues:
        raise ClientValidationError(issues)
    return CardCreateRequest(name=name, number=number, card_type=card_type)


@dataclass
class CardResolver:
    cards: CardsClient

    def resolve_card(self, selection: CardSelection | None) -> int:
        if selection is None:
            raise ClientValidationError([ValidationIssue(field="card", reason="select or enter a card")])
        if selection.card_id is not None:
            return selection.card_id
        request = validate_card_selection(selection)
        card = self.cards.create_card(request)
        if card.id is None:
            raise ValueError("Card was created without an id")
        logger.info("card_created", extra={"card_id": card.id, "card_type": request.card_type})
        return card.id
