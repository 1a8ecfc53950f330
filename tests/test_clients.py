from __future__ import annotations

import json

import pytest
import responses

from pos_admin_sdk import load_config
from pos_admin_sdk.clients import (
    CardsClient,
    CatalogClient,
    CreditsClient,
    InventoryDetailsClient,
    SaleDetailsClient,
    SalesClient,
)
from pos_admin_sdk.exceptions import AuthError, NotFoundError
from pos_admin_sdk.http_client import HttpClient
from pos_admin_sdk.models_inventory import InventoryDetail
from pos_admin_sdk.models_sales import (
    PaymentMethod,
    SaleDetailWriteRequest,
    SaleKind,
    SaleStatus,
    SaleWriteRequest,
)


def _client(base_url: str) -> HttpClient:
    cfg = load_config()
    object.__setattr__(cfg, "api_base_url", base_url)
    return HttpClient(cfg)


def _sale_request() -> SaleWriteRequest:
    return SaleWriteRequest(
        branch_id=1,
        client_id=2,
        worker_id=3,
        total=62.64,
        discount=10,
        tax=16,
        payment_method=PaymentMethod.CASH,
        sale_kind=SaleKind.CASH,
        notes="mostrador",
        status=SaleStatus.PAID,
    )


@responses.activate
def test_create_sale_sends_wire_keys_and_auth_headers() -> None:
    http = _client("https://api.example.com")
    responses.add(responses.POST, "https://api.example.com/sell", json={"idVenta": 41, "totalVenta": 62.64}, status=201)
    client = SalesClient(http=http, access_token="token", branch_id=1)

    sale = client.create_sale(_sale_request())

    assert sale.id == 41
    request = responses.calls[0].request
    body = json.loads(request.body)
    assert body["idSucursal"] == 1
    assert body["idCliente"] == 2
    assert body["idTrabajador"] == 3
    assert body["metodoPago"] == "EFECTIVO"
    assert body["estado"] == "PAID"
    assert "idTarjeta" not in body
    assert request.headers["Authorization"] == "Bearer token"
    assert request.headers["X-Branch-ID"] == "1"


@responses.activate
def test_update_sale_without_body_echoes_request() -> None:
    http = _client("https://api.example.com")
    responses.add(responses.PUT, "https://api.example.com/sell/41", status=204)
    sale = SalesClient(http=http, access_token="token").update_sale(41, _sale_request())
    assert sale.id == 41
    assert sale.status == "PAID"


@pytest.mark.parametrize(
    "payload",
    [
        [{"idVenta": 1}, {"idVenta": 2}],
        {"ventas": [{"idVenta": 1}, {"idVenta": 2}]},
        {"data": [{"idVenta": 1}, {"idVenta": 2}]},
    ],
)
@responses.activate
def test_list_sales_accepts_wrapped_and_bare_lists(payload) -> None:
    http = _client("https://api.example.com")
    responses.add(responses.GET, "https://api.example.com/sell/sucursal/5", json=payload, status=200)
    rows = SalesClient(http=http, access_token="token").list_sales_for_branch(5).rows
    assert [row.id for row in rows] == [1, 2]


@responses.activate
def test_sale_detail_create_and_list() -> None:
    http = _client("https://api.example.com")
    responses.add(responses.POST, "https://api.example.com/sellDetails", json={"idDetalleVenta": 7}, status=201)
    responses.add(
        responses.GET,
        "https://api.example.com/sellDetails/venta/41",
        json=[{"idDetalleVenta": 7, "idVenta": 41, "idProducto": 3, "cantidad": 2, "precio": 5.5, "subtotal": 11.0}],
        status=200,
    )
    client = SaleDetailsClient(http=http, access_token="token")

    created = client.create_detail(
        SaleDetailWriteRequest(sale_id=41, product_id=3, quantity=2, unit_price=5.5, subtotal=11.0)
    )
    listed = client.list_for_sale(41).rows

    assert created.id == 7
    body = json.loads(responses.calls[0].request.body)
    assert body == {"idVenta": 41, "idProducto": 3, "cantidad": 2, "precio": 5.5, "subtotal": 11.0}
    assert listed[0].quantity == 2


@responses.activate
def test_inventory_list_treats_bad_quantities_as_zero() -> None:
    http = _client("https://api.example.com")
    responses.add(
        responses.GET,
        "https://api.example.com/inventoryDetails/producto/3",
        json=[
            {"idDetalleInventario": 1, "idProducto": 3, "cantidad": "4"},
            {"idDetalleInventario": 2, "idProducto": 3, "cantidad": None},
            {"idDetalleInventario": 3, "idProducto": 3, "cantidad": "n/a"},
            {"idDetalleInventario": 4, "idProducto": 3},
        ],
        status=200,
    )
    listing = InventoryDetailsClient(http=http, access_token="token").list_for_product(3)
    assert [row.quantity for row in listing.rows] == [4, 0, 0, 0]
    assert listing.total_quantity == 4


@responses.activate
def test_inventory_reads_bypass_get_cache() -> None:
    http = _client("https://api.example.com")
    url = "https://api.example.com/inventoryDetails/producto/3"
    responses.add(responses.GET, url, json=[{"idDetalleInventario": 1, "cantidad": 4}], status=200)
    responses.add(responses.GET, url, json=[{"idDetalleInventario": 1, "cantidad": 1}], status=200)
    client = InventoryDetailsClient(http=http, access_token="token")
    assert client.list_for_product(3).total_quantity == 4
    assert client.list_for_product(3).total_quantity == 1


@responses.activate
def test_inventory_update_sends_full_record() -> None:
    http = _client("https://api.example.com")
    responses.add(responses.PUT, "https://api.example.com/inventoryDetails/1", json={}, status=200)
    record = InventoryDetail.model_validate(
        {"idDetalleInventario": 1, "idInventario": 9, "idProducto": 3, "cantidad": 10, "estado": "NUEVO", "disponible": True}
    )
    InventoryDetailsClient(http=http, access_token="token").update_detail(record.with_quantity(0))
    body = json.loads(responses.calls[0].request.body)
    assert body == {
        "idDetalleInventario": 1,
        "idInventario": 9,
        "idProducto": 3,
        "cantidad": 0,
        "estado": "NUEVO",
        "disponible": False,
    }


def test_inventory_update_requires_id() -> None:
    http = _client("https://api.example.com")
    with pytest.raises(ValueError):
        InventoryDetailsClient(http=http).update_detail(InventoryDetail(quantity=1))


@responses.activate
def test_cards_and_catalog_clients() -> None:
    http = _client("https://api.example.com")
    responses.add(responses.POST, "https://api.example.com/tarjeta", json={"idTarjeta": 4, "nombre": "BBVA"}, status=201)
    responses.add(
        responses.GET,
        "https://api.example.com/client",
        json={"clients": [{"idCliente": 1, "persona": {"nombre": "Ana", "primerApellido": "Lopez"}}]},
        status=200,
    )
    responses.add(
        responses.GET,
        "https://api.example.com/product",
        json={"products": [{"idProducto": 3, "nombre": "Taladro", "precio": 20.0}]},
        status=200,
    )

    card = CardsClient(http=http, access_token="token").create_card({"nombre": "BBVA", "numero": "1234", "tipo": "DEBITO"})
    catalog = CatalogClient(http=http, access_token="token")
    clients = catalog.list_clients().rows
    products = catalog.list_products().rows

    assert card.id == 4
    assert json.loads(responses.calls[0].request.body) == {"nombre": "BBVA", "numero": "1234", "tipo": "DEBITO"}
    assert clients[0].display_name == "Ana Lopez"
    assert products[0].display_name == "Taladro"


@responses.activate
def test_unauthorized_request_refreshes_once_and_retries() -> None:
    http = _client("https://api.example.com")
    responses.add(responses.GET, "https://api.example.com/tarjeta", json={"message": "expired"}, status=401)
    responses.add(responses.GET, "https://api.example.com/tarjeta", json=[{"idTarjeta": 1}], status=200)
    refreshed: list[str] = []

    def refresh() -> str:
        refreshed.append("called")
        return "fresh-token"

    client = CardsClient(http=http, access_token="stale-token", refresh_token_hook=refresh)
    rows = client.list_cards().rows

    assert [row.id for row in rows] == [1]
    assert refreshed == ["called"]
    assert responses.calls[0].request.headers["Authorization"] == "Bearer stale-token"
    assert responses.calls[1].request.headers["Authorization"] == "Bearer fresh-token"


@responses.activate
def test_second_unauthorized_propagates() -> None:
    http = _client("https://api.example.com")
    responses.add(responses.GET, "https://api.example.com/tarjeta", json={"message": "expired"}, status=401)
    client = CardsClient(http=http, access_token="stale-token", refresh_token_hook=lambda: "fresh-token")
    with pytest.raises(AuthError):
        client.list_cards()
    assert len(responses.calls) == 2


@responses.activate
def test_unauthorized_without_refresh_hook_propagates() -> None:
    http = _client("https://api.example.com")
    responses.add(responses.GET, "https://api.example.com/tarjeta", json={"message": "expired"}, status=401)
    with pytest.raises(AuthError):
        CardsClient(http=http, access_token="token").list_cards()
    assert len(responses.calls) == 1


@responses.activate
def test_list_credits_reads_nested_sale() -> None:
    http = _client("https://api.example.com")
    responses.add(
        responses.GET,
        "https://api.example.com/credito/sucursal/1",
        json=[
            {
                "idCredito": 7,
                "venta": {"idVenta": 41, "totalVenta": 200.0, "cliente": {"idCliente": 2}},
                "montoInicial": 200.0,
                "saldo": 50.0,
                "tasaInteres": 5,
                "plazoMeses": 6,
                "estado": "ACTIVO",
            }
        ],
        status=200,
    )
    credit = CreditsClient(http=http, access_token="token", branch_id=1).list_for_branch(1).rows[0]

    assert (credit.id, credit.sale_id, credit.balance, credit.status) == (7, 41, 50.0, "ACTIVO")
    assert credit.progress_percent == pytest.approx(75.0)


@responses.activate
def test_create_credit_and_payment_send_wire_keys() -> None:
    http = _client("https://api.example.com")
    responses.add(responses.POST, "https://api.example.com/credito", json={"idCredito": 7, "saldo": 200.0}, status=201)
    responses.add(responses.POST, "https://api.example.com/credito/pago", status=204)
    client = CreditsClient(http=http, access_token="token")

    credit = client.create_credit({"idVenta": 41, "montoInicial": 200.0, "plazoMeses": 6})
    payment = client.record_payment(
        {"idCredito": 7, "monto": 25.5, "metodoPago": "TRANSFERENCIA", "notas": "abono"}
    )

    assert credit.id == 7
    assert json.loads(responses.calls[0].request.body) == {
        "idVenta": 41,
        "montoInicial": 200.0,
        "tasaInteres": 0.0,
        "plazoMeses": 6,
        "notas": "",
    }
    assert json.loads(responses.calls[1].request.body) == {
        "idCredito": 7,
        "monto": 25.5,
        "metodoPago": "TRANSFERENCIA",
        "notas": "abono",
    }
    assert (payment.amount, payment.payment_method) == (25.5, "TRANSFERENCIA")


@responses.activate
def test_credit_payments_lift_nested_method() -> None:
    http = _client("https://api.example.com")
    responses.add(
        responses.GET,
        "https://api.example.com/credito-pagos/credito/7",
        json={"creditosPagos": [{"id": 1, "fecha": "2024-02-01", "monto": 20, "pago": {"metodoPago": "EFECTIVO"}}]},
        status=200,
    )
    payments = CreditsClient(http=http, access_token="token").list_payments(7).rows
    assert [(row.id, row.amount, row.payment_method) for row in payments] == [(1, 20.0, "EFECTIVO")]


@responses.activate
def test_product_write_operations() -> None:
    http = _client("https://api.example.com")
    responses.add(responses.POST, "https://api.example.com/product", json={"idProducto": 3, "nombre": "A52"}, status=201)
    responses.add(responses.PUT, "https://api.example.com/product/3", status=204)
    responses.add(responses.DELETE, "https://api.example.com/product/3", status=204)
    client = CatalogClient(http=http, access_token="token")

    created = client.create_product({"nombre": "A52", "marca": "Samsung", "precio": 300, "stock": 4})
    updated = client.update_product(3, {"nombre": "A52", "precio": 280})
    client.delete_product(3)

    assert created.id == 3
    body = json.loads(responses.calls[0].request.body)
    assert (body["nombre"], body["marca"], body["precio"], body["stock"], body["activo"]) == (
        "A52",
        "Samsung",
        300.0,
        4,
        True,
    )
    assert (updated.id, updated.price) == (3, 280.0)
    assert responses.calls[2].request.method == "DELETE"


@responses.activate
def test_product_delete_invalidates_cached_list() -> None:
    http = _client("https://api.example.com")
    responses.add(responses.GET, "https://api.example.com/product", json=[{"idProducto": 3}], status=200)
    responses.add(responses.DELETE, "https://api.example.com/product/3", status=204)
    client = CatalogClient(http=http, access_token="token")

    client.list_products()
    client.list_products()
    client.delete_product(3)
    client.list_products()

    assert [call.request.method for call in responses.calls] == ["GET", "DELETE", "GET"]


@responses.activate
def test_delete_missing_product_raises_not_found() -> None:
    http = _client("https://api.example.com")
    responses.add(responses.DELETE, "https://api.example.com/product/9", json={"message": "No existe"}, status=404)
    with pytest.raises(NotFoundError) as exc_info:
        CatalogClient(http=http, access_token="token").delete_product(9)
    assert exc_info.value.operation == "catalog.delete_product"
