from __future__ import annotations

from typing import List

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class CardCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(alias="nombre")
    number: str = Field(alias="numero")
    card_type: str = Field(alias="tipo")


class Card(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: int | None = Field(
        default=None,
        validation_alias=AliasChoices("idTarjeta", "id"),
        serialization_alias="idTarjeta",
    )
    name: str | None = Field(default=None, alias="nombre")
    number: str | None = Field(default=None, alias="numero")
    card_type: str | None = Field(default=None, alias="tipo")

    @property
    def label(self) -> str:
        suffix = f" ****{self.number[-4:]}" if self.number else ""
        return f"{self.name or 'Tarjeta'}{suffix}"


class CardListResponse(BaseModel):
    rows: List[Card] = Field(default_factory=list)
