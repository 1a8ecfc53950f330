from __future__ import annotations

from dataclasses import dataclass
from typing import List

from pydantic import ValidationError as PydanticValidationError

from pos_admin_sdk import ApiError, ApiSession, Client, ClientWriteRequest

from ..error_presenter import api_error_details, present_api_error


@dataclass(frozen=True)
class ClientsServiceError(RuntimeError):
    message: str
    details: str | None = None

    def __str__(self) -> str:
        return self.message


class ClientsService:
    def __init__(self, session: ApiSession) -> None:
        self.session = session

    def list_clients(self) -> List[Client]:
        try:
            return self.session.catalog_client().list_clients().rows
        except ApiError as exc:
            raise self._normalize_error(exc) from exc

    def register_client(
        self,
        *,
        first_name: str,
        first_surname: str = "",
        second_surname: str = "",
        phone: str = "",
        credit_enabled: bool = False,
    ) -> Client:
        request = self._request(first_name, first_surname, second_surname, phone, credit_enabled)
        try:
            return self.session.catalog_client().create_client(request)
        except ApiError as exc:
            raise self._normalize_error(exc) from exc

    def update_client(
        self,
        client_id: int,
        *,
        first_name: str,
        first_surname: str = "",
        second_surname: str = "",
        phone: str = "",
        credit_enabled: bool = False,
    ) -> Client:
        request = self._request(first_name, first_surname, second_surname, phone, credit_enabled)
        try:
            return self.session.catalog_client().update_client(client_id, request)
        except ApiError as exc:
            raise self._normalize_error(exc) from exc

    @staticmethod
    def _request(
        first_name: str, first_surname: str, second_surname: str, phone: str, credit_enabled: bool
    ) -> ClientWriteRequest:
        try:
            return ClientWriteRequest(
                first_name=first_name.strip(),
                first_surname=first_surname.strip(),
                second_surname=second_surname.strip(),
                phone=phone.strip(),
                credit_enabled=credit_enabled,
            )
        except PydanticValidationError as exc:
            raise ClientsServiceError(message="Client first name is required.", details=str(exc)) from exc

    @staticmethod
    def _normalize_error(exc: ApiError) -> ClientsServiceError:
        return ClientsServiceError(
            message=present_api_error(exc),
            details=api_error_details(exc),
        )
