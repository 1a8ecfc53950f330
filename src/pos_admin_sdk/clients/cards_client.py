from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ..models_cards import Card, CardCreateRequest, CardListResponse
from ..normalizers import normalize_rows
from .base import BaseClient, expect_object
from .sales_client import _coerce_model

CARDS_PATH = "/tarjeta"


@dataclass
class CardsClient(BaseClient):
    def list_cards(self) -> CardListResponse:
        data = self._request("GET", CARDS_PATH, module="cards", operation="list_cards", use_get_cache=False)
        return CardListResponse(rows=[Card.model_validate(row) for row in normalize_rows(data, "tarjetas")])

    def create_card(self, payload: CardCreateRequest | Mapping[str, Any]) -> Card:
        request = _coerce_model(payload, CardCreateRequest)
        data = self._request(
            "POST",
            CARDS_PATH,
            json_body=request.model_dump(mode="json", by_alias=True),
            module="cards",
            operation="create_card",
        )
        return Card.model_validate(expect_object(data, "create card"))
