from __future__ import annotations

from typing import Any, List

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class TokenResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    access_token: str
    refresh_token: str | None = None


class Person(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    first_name: str | None = Field(default=None, alias="nombre")
    first_surname: str | None = Field(default=None, alias="primerApellido")
    second_surname: str | None = Field(default=None, alias="segundoApellido")
    phone: str | None = Field(default=None, alias="numeroTelefono")

    @property
    def full_name(self) -> str:
        parts = [self.first_name, self.first_surname, self.second_surname]
        return " ".join(part.strip() for part in parts if part and part.strip())


class WorkerResponse(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: int | None = Field(
        default=None,
        validation_alias=AliasChoices("idTrabajador", "id"),
        serialization_alias="idTrabajador",
    )
    branch_id: int | None = Field(default=None, alias="idSucursal")
    persona: Person | None = None


class WorkerProfile(BaseModel):
    """Acting worker identity as cached by the profile provider."""

    id: int | None = None
    branch_id: int | None = None
    email: str | None = None
    name: str = ""
    short_name: str = ""
    initials: str = "U"
    raw: dict[str, Any] = Field(default_factory=dict)


class SessionData(BaseModel):
    access_token: str
    refresh_token: str | None = None
    email: str | None = None
    branch_id: int | None = None
    env_name: str | None = None


class CachedProfile(BaseModel):
    ts: float
    profile: WorkerProfile


class Client(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: int | None = Field(
        default=None,
        validation_alias=AliasChoices("idCliente", "id"),
        serialization_alias="idCliente",
    )
    persona: Person | None = None
    credit_enabled: bool | None = Field(default=None, alias="creditoActivo")
    name_fallback: str | None = Field(default=None, alias="nombreCliente")

    @property
    def display_name(self) -> str:
        if self.persona and self.persona.full_name:
            return self.persona.full_name
        return self.name_fallback or "Cliente"


class ClientWriteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    first_name: str = Field(alias="nombre", min_length=1)
    first_surname: str = Field(default="", alias="primerApellido")
    second_surname: str = Field(default="", alias="segundoApellido")
    phone: str = Field(default="", alias="numeroTelefono")
    credit_enabled: bool = Field(default=False, alias="creditoActivo")


class Product(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: int | None = Field(
        default=None,
        validation_alias=AliasChoices("idProducto", "id"),
        serialization_alias="idProducto",
    )
    code: str | None = Field(default=None, alias="codigo")
    name: str | None = Field(default=None, alias="nombre")
    model: str | None = Field(default=None, alias="modelo")
    category: str | None = Field(default=None, alias="categoria")
    price: float | None = Field(default=None, alias="precio")
    stock: int | None = None
    min_stock: int | None = Field(default=None, alias="stockMinimo")

    @property
    def display_name(self) -> str:
        return self.name or self.model or f"Producto {self.id}"


class ProductWriteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(alias="nombre", min_length=1)
    description: str = Field(default="", alias="descripcion")
    brand: str = Field(default="", alias="marca")
    model: str = Field(default="", alias="modelo")
    imei: str = ""
    category: str = Field(default="", alias="categoria")
    cost: float = Field(default=0.0, alias="costo", ge=0)
    price: float = Field(default=0.0, alias="precio", ge=0)
    stock: int = Field(default=0, ge=0)
    active: bool = Field(default=True, alias="activo")


class ClientListResponse(BaseModel):
    rows: List[Client] = Field(default_factory=list)


class ProductListResponse(BaseModel):
    rows: List[Product] = Field(default_factory=list)
