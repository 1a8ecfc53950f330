from __future__ import annotations

import threading

import pytest

from saga_fakes import FakeCards, FakeInventory, FakeSaleDetails, FakeSales, server_error

from pos_admin_sdk.card_resolution import CardSelection
from pos_admin_sdk.models_inventory import InventoryDetail
from pos_admin_sdk.models_sales import PaymentMethod, SaleKind, SaleStatus
from pos_admin_sdk.sale_errors import InsufficientStockError, SagaInProgressError, StockVerificationError
from pos_admin_sdk.sale_saga import SaleSaga, SaleTransactionContext
from pos_admin_sdk.sale_state import SagaStage, SagaStatus

PRODUCT_ID = 3


def _fakes(*quantities):
    return {
        "sales": FakeSales(),
        "sale_details": FakeSaleDetails(),
        "inventory": FakeInventory.with_quantities(PRODUCT_ID, *(quantities or (10,))),
        "cards": FakeCards(),
    }


def _saga(fakes, **kwargs) -> SaleSaga:
    return SaleSaga(**fakes, **kwargs)


def _create(**overrides) -> SaleTransactionContext:
    fields = dict(
        branch_id=1,
        worker_id=4,
        client_id=2,
        product_id=PRODUCT_ID,
        quantity=3,
        unit_price=20.0,
        discount_pct=10,
        tax_pct=16,
    )
    fields.update(overrides)
    return SaleTransactionContext.for_create(**fields)


def test_create_path_writes_one_sale_one_detail_one_inventory_update() -> None:
    fakes = _fakes(10)
    outcome = _saga(fakes).run(_create())

    assert outcome.status is SagaStatus.COMPLETED
    assert outcome.ok
    assert outcome.stages == (
        SagaStage.VALIDATING,
        SagaStage.STOCK_CHECK,
        SagaStage.HEADER_UPSERT,
        SagaStage.DETAIL_UPSERT,
        SagaStage.INVENTORY_DECREMENT,
        SagaStage.DONE,
    )
    assert len(fakes["sales"].created) == 1
    header = fakes["sales"].created[0]
    assert header.total == pytest.approx(62.64)
    assert header.status is SaleStatus.PAID
    assert header.card_id is None
    detail = fakes["sale_details"].created[0]
    assert detail.sale_id == outcome.sale_id == 100
    assert detail.subtotal == detail.quantity * detail.unit_price == 60.0
    assert len(fakes["inventory"].updates) == 1
    assert fakes["inventory"].updates[0].quantity == 7
    assert outcome.inventory_detail_id == 1
    assert outcome.totals.display_total == "62.64"


def test_credit_sale_is_submitted_pending() -> None:
    fakes = _fakes(10)
    _saga(fakes).run(_create(sale_kind=SaleKind.CREDIT))
    assert fakes["sales"].created[0].status is SaleStatus.PENDING


def test_validation_failure_issues_no_requests() -> None:
    fakes = _fakes(10)
    outcome = _saga(fakes).run(_create(client_id=None))

    assert outcome.status is SagaStatus.FAILED
    assert outcome.failed_stage is SagaStage.VALIDATING
    assert outcome.stages == (SagaStage.VALIDATING, SagaStage.ERROR)
    assert fakes["inventory"].reads == 0
    assert fakes["sales"].created == []


def test_insufficient_stock_aborts_before_any_write() -> None:
    fakes = _fakes(5, 0, 3)
    outcome = _saga(fakes).run(_create(quantity=9))

    assert outcome.status is SagaStatus.FAILED
    assert outcome.failed_stage is SagaStage.STOCK_CHECK
    assert isinstance(outcome.error, InsufficientStockError)
    assert outcome.available == 8
    assert fakes["sales"].created == []
    assert fakes["inventory"].updates == []


def test_stock_read_failure_is_not_reported_as_insufficient() -> None:
    fakes = _fakes(10)
    fakes["inventory"].fail_list = server_error("inventory down")
    outcome = _saga(fakes).run(_create())

    assert isinstance(outcome.error, StockVerificationError)
    assert not isinstance(outcome.error, InsufficientStockError)
    assert outcome.available is None


def test_header_failure_halts_before_detail_and_inventory() -> None:
    fakes = _fakes(10)
    fakes["sales"].fail_create = server_error("cannot insert")
    outcome = _saga(fakes).run(_create())

    assert outcome.failed_stage is SagaStage.HEADER_UPSERT
    assert outcome.message == "cannot insert"
    assert fakes["sale_details"].created == []
    assert fakes["inventory"].updates == []


def test_detail_failure_leaves_header_by_default() -> None:
    fakes = _fakes(10)
    fakes["sale_details"].fail_create = server_error("detail rejected")
    outcome = _saga(fakes).run(_create())

    assert outcome.failed_stage is SagaStage.DETAIL_UPSERT
    assert outcome.sale_id == 100
    assert outcome.compensated is False
    assert fakes["sales"].updated == []
    assert fakes["inventory"].updates == []


def test_detail_failure_cancels_header_when_compensating() -> None:
    fakes = _fakes(10)
    fakes["sale_details"].fail_create = server_error("detail rejected")
    outcome = _saga(fakes, compensate_on_failure=True).run(_create())

    assert outcome.status is SagaStatus.FAILED
    assert outcome.compensated is True
    sale_id, request = fakes["sales"].updated[0]
    assert sale_id == 100
    assert request.status is SaleStatus.CANCELLED


def test_inventory_failure_is_a_warning_and_keeps_the_sale() -> None:
    fakes = _fakes(10)
    # Another sale drained the stock between the check and the decrement.
    fakes["inventory"].after_first_read = [InventoryDetail(id=1, product_id=PRODUCT_ID, quantity=0)]
    outcome = _saga(fakes, compensate_on_failure=True).run(_create())

    assert outcome.status is SagaStatus.COMPLETED_WITH_WARNING
    assert outcome.ok
    assert outcome.failed_stage is SagaStage.INVENTORY_DECREMENT
    assert outcome.sale_id == 100
    assert outcome.detail_id == 500
    assert fakes["sales"].updated == []
    assert fakes["inventory"].updates == []


def test_inventory_record_without_id_is_a_warning_not_an_exception() -> None:
    fakes = _fakes()
    fakes["inventory"] = FakeInventory(records={PRODUCT_ID: [InventoryDetail(product_id=PRODUCT_ID, quantity=10)]})
    outcome = _saga(fakes).run(_create())

    assert outcome.status is SagaStatus.COMPLETED_WITH_WARNING
    assert outcome.recorded
    assert outcome.failed_stage is SagaStage.INVENTORY_DECREMENT
    assert outcome.message == "Inventory detail id is required for update"
    assert len(fakes["sales"].created) == 1
    assert len(fakes["sale_details"].created) == 1


def test_malformed_stock_row_fails_the_stock_check() -> None:
    fakes = _fakes()
    fakes["inventory"].raw_rows = [{"idDetalleInventario": "abc", "idProducto": PRODUCT_ID, "cantidad": 10}]
    outcome = _saga(fakes).run(_create())

    assert outcome.status is SagaStatus.FAILED
    assert outcome.failed_stage is SagaStage.STOCK_CHECK
    assert isinstance(outcome.error, StockVerificationError)
    assert fakes["sales"].created == []


def test_card_payment_creates_card_and_links_it() -> None:
    fakes = _fakes(10)
    context = _create(
        payment_method=PaymentMethod.CARD,
        card=CardSelection(name="BBVA", number="4321", card_type="DEBITO"),
    )
    outcome = _saga(fakes).run(context)

    assert SagaStage.CARD_RESOLUTION in outcome.stages
    assert outcome.card_id == 900
    assert fakes["sales"].created[0].card_id == 900


def test_existing_card_skips_card_stage() -> None:
    fakes = _fakes(10)
    outcome = _saga(fakes).run(_create(payment_method=PaymentMethod.CARD, card=CardSelection.existing(33)))

    assert SagaStage.CARD_RESOLUTION not in outcome.stages
    assert fakes["cards"].created == []
    assert fakes["sales"].created[0].card_id == 33


def test_invalid_card_fails_before_header() -> None:
    fakes = _fakes(10)
    context = _create(payment_method=PaymentMethod.CARD, card=CardSelection(name="BB", number="1", card_type=""))
    outcome = _saga(fakes).run(context)

    assert outcome.failed_stage is SagaStage.CARD_RESOLUTION
    assert fakes["cards"].created == []
    assert fakes["sales"].created == []


def test_card_is_ignored_for_cash_payments() -> None:
    fakes = _fakes(10)
    _saga(fakes).run(_create(card=CardSelection.existing(33)))
    assert fakes["sales"].created[0].card_id is None


def _modify(**overrides) -> SaleTransactionContext:
    fields = dict(
        branch_id=1,
        worker_id=4,
        client_id=2,
        product_id=PRODUCT_ID,
        quantity=5,
        unit_price=20.0,
    )
    fields.update(overrides)
    return SaleTransactionContext.for_modify(sale_id=77, detail_id=88, **fields)


def test_modify_path_updates_in_place_without_inventory() -> None:
    fakes = _fakes(1)
    outcome = _saga(fakes).run(_modify())

    assert outcome.status is SagaStatus.COMPLETED
    assert outcome.modifying
    assert fakes["sales"].created == []
    assert fakes["sale_details"].created == []
    assert [sale_id for sale_id, _ in fakes["sales"].updated] == [77]
    assert [detail_id for detail_id, _ in fakes["sale_details"].updated] == [88]
    assert fakes["sale_details"].updated[0][1].subtotal == 100.0
    assert fakes["inventory"].reads == 0
    assert fakes["inventory"].updates == []
    assert SagaStage.STOCK_CHECK not in outcome.stages


def test_modify_is_idempotent() -> None:
    fakes = _fakes(10)
    saga = _saga(fakes)
    first = saga.run(_modify())
    second = saga.run(_modify())

    assert first.sale_id == second.sale_id == 77
    assert first.detail_id == second.detail_id == 88
    assert fakes["sales"].updated[0] == fakes["sales"].updated[1]
    assert fakes["sale_details"].updated[0] == fakes["sale_details"].updated[1]
    assert fakes["sales"].created == []


def test_modify_keeps_existing_status() -> None:
    fakes = _fakes(10)
    _saga(fakes).run(_modify(status=SaleStatus.CANCELLED))
    assert fakes["sales"].updated[0][1].status is SaleStatus.CANCELLED


def test_modify_header_failure_is_tagged_as_update() -> None:
    fakes = _fakes(10)
    fakes["sales"].fail_update = server_error("locked")
    outcome = _saga(fakes).run(_modify())
    assert outcome.failed_stage is SagaStage.HEADER_UPSERT
    assert outcome.error.modifying is True


def test_listener_sees_every_transition() -> None:
    fakes = _fakes(10)
    seen: list[SagaStage] = []
    _saga(fakes, listener=lambda stage, context: seen.append(stage)).run(_create())
    assert seen[-1] is SagaStage.DONE
    assert seen[0] is SagaStage.VALIDATING


def test_overlapping_submission_is_rejected() -> None:
    fakes = _fakes(10)
    entered = threading.Event()
    release = threading.Event()
    results: list = []

    def block(stage, context) -> None:
        if stage is SagaStage.HEADER_UPSERT:
            entered.set()
            release.wait(timeout=5)

    saga = _saga(fakes, listener=block)
    worker = threading.Thread(target=lambda: results.append(saga.run(_create())))
    worker.start()
    assert entered.wait(timeout=5)
    try:
        assert saga.is_in_flight(_create())
        with pytest.raises(SagaInProgressError):
            saga.run(_create())
    finally:
        release.set()
        worker.join(timeout=5)

    assert results[0].status is SagaStatus.COMPLETED
    assert len(fakes["sales"].created) == 1
    assert not saga.is_in_flight(_create())


def test_repair_inventory_decrements_for_recorded_sale() -> None:
    fakes = _fakes(10)
    fakes["inventory"].after_first_read = [InventoryDetail(id=1, product_id=PRODUCT_ID, quantity=0)]
    saga = _saga(fakes)
    first = saga.run(_create())
    assert first.status is SagaStatus.COMPLETED_WITH_WARNING

    fakes["inventory"].after_first_read = None
    fakes["inventory"].records[PRODUCT_ID] = [InventoryDetail(id=1, product_id=PRODUCT_ID, quantity=6)]
    repaired = saga.repair_inventory(first.sale_id)

    assert repaired.status is SagaStatus.COMPLETED
    assert repaired.stages == (SagaStage.INVENTORY_DECREMENT, SagaStage.DONE)
    assert fakes["inventory"].updates[-1].quantity == 3


def test_repair_inventory_without_line_items_fails() -> None:
    outcome = _saga(_fakes(10)).repair_inventory(12345)
    assert outcome.status is SagaStatus.FAILED
    assert outcome.failed_stage is SagaStage.INVENTORY_DECREMENT


def test_with_card_id_returns_copy() -> None:
    context = _create(payment_method=PaymentMethod.CARD)
    linked = context.with_card_id(5)
    assert context.card is None
    assert linked.card.card_id == 5
