from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ValidationIssue:
    field: str
    reason: str


class ClientValidationError(ValueError):
    def __init__(self, issues: list[ValidationIssue]) -> None:
        self.issues = issues
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if not self.issues:
            return "Validation failed"
        issue = self.issues[0]
        return f"{issue.field}: {issue.reason}"


def validate_sale_inputs(
    *,
    branch_id: int | None,
    client_id: int | None,
    product_id: int | None,
    quantity: int,
    unit_price: float,
    discount_pct: float,
    tax_pct: float,
    modifying: bool = False,
    detail_id: int | None = None,
) -> None:
    """Raise ``ClientValidationError`` before any request is issued."""
    if client_id is None or product_id is None:
        _raise_issue("client_product", "select client and product")
    issues: list[ValidationIssue] = []
    if branch_id is None:
        issues.append(ValidationIssue(field="branch_id", reason="branch is not defined"))
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        issues.append(ValidationIssue(field="quantity", reason="quantity must be a positive integer"))
    if unit_price < 0:
        issues.append(ValidationIssue(field="unit_price", reason="unit price must not be negative"))
    if not 0 <= discount_pct <= 100:
        issues.append(ValidationIssue(field="discount", reason="discount must be between 0 and 100"))
    if not 0 <= tax_pct <= 100:
        issues.append(ValidationIssue(field="tax", reason="tax must be between 0 and 100"))
    if modifying and detail_id is None:
        issues.append(
            ValidationIssue(field="detail_id", reason="the existing sale detail is required to modify a sale")
        )
    if issues:
        raise ClientValidationError(issues)


def _raise_issue(field: str, reason: str) -> None:
    raise ClientValidationError([ValidationIssue(field=field, reason=reason)])
