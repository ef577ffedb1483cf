from __future__ import annotations

import re
from dataclasses import dataclass

from .exceptions import PaymentFieldIssue
from .models_orders import CardPayment, CashPayment, PaymentSelection, UpiPayment

_VPA_RE = re.compile(r"^[\w.\-]+@[\w.\-]+$")
_EXPIRY_RE = re.compile(r"^(0[1-9]|1[0-2])/(\d{2}|\d{4})$")
_CVV_RE = re.compile(r"^\d{3,4}$")
_PAN_MIN_DIGITS = 12
_PAN_MAX_DIGITS = 19


@dataclass(frozen=True)
class PaymentValidationResult:
    ok: bool
    method: str
    issues: list[PaymentFieldIssue]


def _card_digits(card_number: str) -> str:
    return re.sub(r"[\s-]+", "", card_number)


def _card_issues(payment: CardPayment) -> list[PaymentFieldIssue]:
    issues: list[PaymentFieldIssue] = []
    if not payment.holder_name.strip():
        issues.append(PaymentFieldIssue(field="holder_name", reason="card holder name is required"))
    digits = _card_digits(payment.card_number)
    if not digits.isdigit() or not _PAN_MIN_DIGITS <= len(digits) <= _PAN_MAX_DIGITS:
        issues.append(
            PaymentFieldIssue(
                field="card_number",
                reason=f"card number must have {_PAN_MIN_DIGITS} to {_PAN_MAX_DIGITS} digits",
            )
        )
    if not _EXPIRY_RE.match(payment.expiry.strip()):
        issues.append(PaymentFieldIssue(field="expiry", reason="expiry must be MM/YY"))
    if not _CVV_RE.match(payment.cvv.strip()):
        issues.append(PaymentFieldIssue(field="cvv", reason="cvv must be 3 or 4 digits"))
    return issues


def _upi_issues(payment: UpiPayment) -> list[PaymentFieldIssue]:
    if not _VPA_RE.match(payment.vpa.strip()):
        return [PaymentFieldIssue(field="vpa", reason="enter a valid UPI ID (e.g., name@bank)")]
    return []


def validate_payment_selection(selection: PaymentSelection) -> PaymentValidationResult:
    if isinstance(selection, CashPayment):
        issues: list[PaymentFieldIssue] = []
    elif isinstance(selection, CardPayment):
        issues = _card_issues(selection)
    elif isinstance(selection, UpiPayment):
        issues = _upi_issues(selection)
    else:
        raise TypeError(f"Unsupported payment selection: {type(selection).__name__}")
    return PaymentValidationResult(ok=not issues, method=selection.method, issues=issues)


def payment_details(selection: PaymentSelection) -> dict[str, str] | None:
    """Details recorded on the order. The full card number and CVV are never kept."""
    if isinstance(selection, CashPayment):
        return None
    if isinstance(selection, CardPayment):
        return {
            "holder": selection.holder_name.strip(),
            "last4": _card_digits(selection.card_number)[-4:],
            "expiry": selection.expiry.strip(),
        }
    if isinstance(selection, UpiPayment):
        return {"vpa": selection.vpa.strip()}
    raise TypeError(f"Unsupported payment selection: {type(selection).__name__}")
