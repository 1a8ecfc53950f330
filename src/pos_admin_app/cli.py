from __future__ import annotations

import argparse
import json
import logging
from dataclasses import replace
from typing import Any, Sequence

from pos_admin_sdk import (
    ApiError,
    ApiSession,
    CardSelection,
    ConfigError,
    CreditStatus,
    PaymentMethod,
    SaleKind,
    StockVerificationError,
    StockVerifier,
    load_config,
)

from .error_presenter import present_api_error
from .services import (
    AuthService,
    ClientsService,
    ClientsServiceError,
    CreditsService,
    CreditsServiceError,
    ProductsService,
    ProductsServiceError,
    SaleForm,
    SaleSubmissionResult,
    SalesService,
    SalesServiceError,
    stock_status,
    summarize_credits,
)
from .telemetry import TelemetryLogger


def _session(args: argparse.Namespace) -> ApiSession:
    session = ApiSession(load_config(args.env_file))
    if args.branch_id is not None:
        session.set_branch(args.branch_id)
    return session


def _print(payload: Any) -> None:
    print(json.dumps(payload, indent=2, default=str))


def _card_selection(args: argparse.Namespace) -> CardSelection | None:
    if args.card_id is not None:
        return CardSelection.existing(args.card_id)
    if args.card_name or args.card_number or args.card_type:
        return CardSelection(
            name=args.card_name or "",
            number=args.card_number or "",
            card_type=args.card_type or "",
        )
    return None


def _print_submission(result: SaleSubmissionResult) -> None:
    outcome = result.outcome
    _print(
        {
            "ok": result.ok,
            "recorded": outcome.recorded,
            "status": outcome.status.value,
            "message": result.message,
            "sale_id": outcome.sale_id,
            "detail_id": outcome.detail_id,
            "card_id": outcome.card_id,
            "inventory_detail_id": outcome.inventory_detail_id,
            "total": outcome.totals.display_total if outcome.totals else None,
            "failed_stage": outcome.failed_stage.value if outcome.failed_stage else None,
            "stages": [stage.value for stage in outcome.stages],
        }
    )
    if not result.ok:
        raise SystemExit(1)


def cmd_login(args: argparse.Namespace) -> None:
    session = _session(args)
    AuthService(session, telemetry=TelemetryLogger.from_config(session.config)).login(args.email, args.password)
    _print({"email": args.email, "branch_id": session.branch_id, "has_refresh_token": bool(session.refresh_token)})


def cmd_profile(args: argparse.Namespace) -> None:
    profile = AuthService(_session(args)).profile(force_refresh=args.refresh)
    _print(profile.model_dump(exclude={"raw"}))


def cmd_sales_list(args: argparse.Namespace) -> None:
    sales = SalesService(_session(args)).list_sales(use_cache=False)
    _print([sale.model_dump(mode="json", by_alias=True, exclude_none=True) for sale in sales])


def cmd_sales_create(args: argparse.Namespace) -> None:
    session = _session(args)
    service = SalesService(
        session, telemetry=TelemetryLogger.from_config(session.config), compensate_on_failure=args.compensate
    )
    form = SaleForm(
        client_id=args.client_id,
        product_id=args.product_id,
        quantity=args.quantity,
        unit_price=args.price,
        discount_pct=args.discount,
        tax_pct=args.tax,
        notes=args.notes,
        payment_method=PaymentMethod(args.payment_method),
        sale_kind=SaleKind.CREDIT if args.credit else SaleKind.CASH,
        card=_card_selection(args),
    )
    _print_submission(service.record_sale(form))


def cmd_sales_modify(args: argparse.Namespace) -> None:
    session = _session(args)
    service = SalesService(session, telemetry=TelemetryLogger.from_config(session.config))
    form = service.open_for_edit(args.sale_id).form
    overrides: dict[str, Any] = {
        "client_id": args.client_id,
        "product_id": args.product_id,
        "quantity": args.quantity,
        "unit_price": args.price,
        "discount_pct": args.discount,
        "tax_pct": args.tax,
        "notes": args.notes,
        "payment_method": PaymentMethod(args.payment_method) if args.payment_method else None,
        "card": _card_selection(args),
    }
    if args.credit is not None:
        overrides["sale_kind"] = SaleKind.CREDIT if args.credit else SaleKind.CASH
    form = replace(form, **{key: value for key, value in overrides.items() if value is not None})
    _print_submission(service.record_sale(form))


def cmd_sales_repair(args: argparse.Namespace) -> None:
    session = _session(args)
    telemetry = TelemetryLogger.from_config(session.config)
    _print_submission(SalesService(session, telemetry=telemetry).repair_inventory(args.sale_id))


def cmd_stock_check(args: argparse.Namespace) -> None:
    session = _session(args)
    try:
        check = StockVerifier(session.inventory_details_client()).verify_stock(args.product_id, args.quantity)
    except StockVerificationError as exc:
        _print({"error": "STOCK_UNVERIFIED", "message": f"Could not verify stock: {exc.message}"})
        raise SystemExit(1) from exc
    _print({"ok": check.ok, "available": check.available, "requested": check.requested})
    if not check.ok:
        raise SystemExit(1)


def cmd_clients_list(args: argparse.Namespace) -> None:
    clients = ClientsService(_session(args)).list_clients()
    _print([{"id": client.id, "name": client.display_name, "credit": client.credit_enabled} for client in clients])


def cmd_credits_list(args: argparse.Namespace) -> None:
    status = CreditStatus(args.status) if args.status else None
    credits = CreditsService(_session(args)).list_credits(status=status, use_cache=False)
    summary = summarize_credits(credits)
    _print(
        {
            "credits": [
                {
                    "id": credit.id,
                    "sale_id": credit.sale_id,
                    "balance": credit.balance,
                    "status": credit.status,
                    "progress": round(credit.progress_percent, 1),
                }
                for credit in credits
            ],
            "active_balance": summary.active_balance,
            "delinquent_balance": summary.delinquent_balance,
            "paid_count": summary.paid_count,
        }
    )


def cmd_credits_create(args: argparse.Namespace) -> None:
    credit = CreditsService(_session(args)).open_credit_for_sale(
        args.sale_id,
        term_months=args.term_months,
        interest_rate=args.interest_rate,
        amount=args.amount,
        notes=args.notes,
    )
    _print(credit.model_dump(mode="json", by_alias=True, exclude_none=True))


def cmd_credits_pay(args: argparse.Namespace) -> None:
    payment = CreditsService(_session(args)).record_payment(
        args.credit_id,
        args.amount,
        payment_method=PaymentMethod(args.payment_method),
        notes=args.notes,
    )
    _print(payment.model_dump(mode="json", by_alias=True, exclude_none=True))


def cmd_credits_payments(args: argparse.Namespace) -> None:
    payments = CreditsService(_session(args)).list_payments(args.credit_id)
    _print([payment.model_dump(mode="json", by_alias=True, exclude_none=True) for payment in payments])


def cmd_products_list(args: argparse.Namespace) -> None:
    products = ProductsService(_session(args)).list_products()
    _print(
        [
            {
                "id": product.id,
                "name": product.display_name,
                "stock": product.stock,
                "status": stock_status(product).value,
            }
            for product in products
        ]
    )


def _product_fields(args: argparse.Namespace) -> dict[str, Any]:
    fields = {
        "name": args.name,
        "description": args.description,
        "brand": args.brand,
        "model": args.model,
        "imei": args.imei,
        "category": args.category,
        "cost": args.cost,
        "price": args.price,
        "stock": args.stock,
        "active": args.active,
    }
    return {key: value for key, value in fields.items() if value is not None}


def cmd_products_save(args: argparse.Namespace) -> None:
    service = ProductsService(_session(args))
    if args.product_id is None:
        product = service.create_product(**_product_fields(args))
    else:
        product = service.update_product(args.product_id, **_product_fields(args))
    _print(product.model_dump(mode="json", by_alias=True, exclude_none=True))


def cmd_products_delete(args: argparse.Namespace) -> None:
    ProductsService(_session(args)).delete_product(args.product_id)
    _print({"deleted": args.product_id})


def _add_sale_fields(parser: argparse.ArgumentParser, *, required: bool) -> None:
    parser.add_argument("--client-id", type=int, required=required)
    parser.add_argument("--product-id", type=int, required=required)
    parser.add_argument("--quantity", type=int, required=required)
    parser.add_argument("--price", type=float, required=required)
    parser.add_argument("--discount", type=float, default=0.0 if required else None)
    parser.add_argument("--tax", type=float, default=0.0 if required else None)
    parser.add_argument("--notes", default="" if required else None)
    parser.add_argument(
        "--payment-method",
        choices=[method.value for method in PaymentMethod],
        default=PaymentMethod.CASH.value if required else None,
    )
    parser.add_argument("--credit", action=argparse.BooleanOptionalAction, default=False if required else None)
    parser.add_argument("--card-id", type=int)
    parser.add_argument("--card-name")
    parser.add_argument("--card-number")
    parser.add_argument("--card-type")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pos-admin", description="Point-of-sale admin client")
    parser.add_argument("--env-file", default=None)
    parser.add_argument("--branch-id", type=int, default=None)
    parser.add_argument("--verbose", action="store_true")
    subparsers = parser.add_subparsers(dest="command", required=True)

    login_parser = subparsers.add_parser("login")
    login_parser.add_argument("--email", required=True)
    login_parser.add_argument("--password", required=True)
    login_parser.set_defaults(func=cmd_login)

    profile_parser = subparsers.add_parser("profile")
    profile_parser.add_argument("--refresh", action="store_true")
    profile_parser.set_defaults(func=cmd_profile)

    sales_parser = subparsers.add_parser("sales")
    sales_sub = sales_parser.add_subparsers(dest="sales_command", required=True)
    sales_sub.add_parser("list").set_defaults(func=cmd_sales_list)

    create_parser = sales_sub.add_parser("create")
    _add_sale_fields(create_parser, required=True)
    create_parser.add_argument("--compensate", action="store_true", help="cancel the sale if its detail fails")
    create_parser.set_defaults(func=cmd_sales_create)

    modify_parser = sales_sub.add_parser("modify")
    modify_parser.add_argument("--sale-id", type=int, required=True)
    _add_sale_fields(modify_parser, required=False)
    modify_parser.set_defaults(func=cmd_sales_modify)

    repair_parser = sales_sub.add_parser("repair-inventory")
    repair_parser.add_argument("--sale-id", type=int, required=True)
    repair_parser.set_defaults(func=cmd_sales_repair)

    stock_parser = subparsers.add_parser("stock")
    stock_sub = stock_parser.add_subparsers(dest="stock_command", required=True)
    check_parser = stock_sub.add_parser("check")
    check_parser.add_argument("--product-id", type=int, required=True)
    check_parser.add_argument("--quantity", type=int, required=True)
    check_parser.set_defaults(func=cmd_stock_check)

    clients_parser = subparsers.add_parser("clients")
    clients_sub = clients_parser.add_subparsers(dest="clients_command", required=True)
    clients_sub.add_parser("list").set_defaults(func=cmd_clients_list)

    credits_parser = subparsers.add_parser("credits")
    credits_sub = credits_parser.add_subparsers(dest="credits_command", required=True)
    credits_list_parser = credits_sub.add_parser("list")
    credits_list_parser.add_argument("--status", choices=[status.value for status in CreditStatus])
    credits_list_parser.set_defaults(func=cmd_credits_list)

    credit_create_parser = credits_sub.add_parser("create")
    credit_create_parser.add_argument("--sale-id", type=int, required=True)
    credit_create_parser.add_argument("--term-months", type=int, required=True)
    credit_create_parser.add_argument("--interest-rate", type=float, default=0.0)
    credit_create_parser.add_argument("--amount", type=float, help="defaults to the sale total")
    credit_create_parser.add_argument("--notes", default="")
    credit_create_parser.set_defaults(func=cmd_credits_create)

    pay_parser = credits_sub.add_parser("pay")
    pay_parser.add_argument("--credit-id", type=int, required=True)
    pay_parser.add_argument("--amount", type=float, required=True)
    pay_parser.add_argument(
        "--payment-method", choices=[method.value for method in PaymentMethod], default=PaymentMethod.CASH.value
    )
    pay_parser.add_argument("--notes", default="")
    pay_parser.set_defaults(func=cmd_credits_pay)

    payments_parser = credits_sub.add_parser("payments")
    payments_parser.add_argument("--credit-id", type=int, required=True)
    payments_parser.set_defaults(func=cmd_credits_payments)

    products_parser = subparsers.add_parser("products")
    products_sub = products_parser.add_subparsers(dest="products_command", required=True)
    products_sub.add_parser("list").set_defaults(func=cmd_products_list)

    save_parser = products_sub.add_parser("save", help="create a product, or update it when --product-id is given")
    save_parser.add_argument("--product-id", type=int)
    save_parser.add_argument("--name", required=True)
    for option in ("--description", "--brand", "--model", "--imei", "--category"):
        save_parser.add_argument(option)
    save_parser.add_argument("--cost", type=float)
    save_parser.add_argument("--price", type=float)
    save_parser.add_argument("--stock", type=int)
    save_parser.add_argument("--active", action=argparse.BooleanOptionalAction, default=None)
    save_parser.set_defaults(func=cmd_products_save)

    delete_parser = products_sub.add_parser("delete")
    delete_parser.add_argument("--product-id", type=int, required=True)
    delete_parser.set_defaults(func=cmd_products_delete)
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    try:
        args.func(args)
    except ConfigError as exc:
        _print({"error": "CONFIG_ERROR", "message": str(exc)})
        raise SystemExit(1) from exc
    except ApiError as exc:
        _print({"error": exc.code, "message": present_api_error(exc), "status_code": exc.status_code})
        raise SystemExit(1) from exc
    except (SalesServiceError, ClientsServiceError, CreditsServiceError, ProductsServiceError) as exc:
        _print({"error": type(exc).__name__, "message": exc.message, "details": exc.details})
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
