from __future__ import annotations

import pytest
from pydantic import ValidationError as PydanticValidationError

from storefront_pos.models_orders import CardPayment, CashPayment, UpiPayment, parse_payment_selection
from storefront_pos.payment_validation import payment_details, validate_payment_selection


def _card(**overrides: str) -> CardPayment:
    fields = {
        "holder_name": "Asha Rao",
        "card_number": "4111 1111 1111 1111",
        "expiry": "08/27",
        "cvv": "123",
    }
    fields.update(overrides)
    return CardPayment(**fields)


def test_cash_needs_no_fields() -> None:
    result = validate_payment_selection(CashPayment())
    assert result.ok is True
    assert result.method == "cash"
    assert result.issues == []


def test_valid_card_passes() -> None:
    assert validate_payment_selection(_card()).ok is True


@pytest.mark.parametrize(
    ("overrides", "field"),
    [
        ({"holder_name": "  "}, "holder_name"),
        ({"card_number": "4111 1111"}, "card_number"),
        ({"card_number": "4111-1111-1111-111x"}, "card_number"),
        ({"expiry": ""}, "expiry"),
        ({"expiry": "13/27"}, "expiry"),
        ({"cvv": "12"}, "cvv"),
    ],
)
def test_card_field_issues(overrides: dict[str, str], field: str) -> None:
    result = validate_payment_selection(_card(**overrides))
    assert result.ok is False
    assert [issue.field for issue in result.issues] == [field]


def test_upi_requires_name_at_bank() -> None:
    assert validate_payment_selection(UpiPayment(vpa="asha.rao@okbank")).ok is True
    result = validate_payment_selection(UpiPayment(vpa="not-an-address"))
    assert result.ok is False
    assert result.issues[0].field == "vpa"


def test_unknown_selection_type_is_rejected() -> None:
    with pytest.raises(TypeError):
        validate_payment_selection(object())  # type: ignore[arg-type]


def test_card_details_keep_only_last_four_digits() -> None:
    details = payment_details(_card())
    assert details == {"holder": "Asha Rao", "last4": "1111", "expiry": "08/27"}
    assert "cvv" not in details
    assert payment_details(CashPayment()) is None
    assert payment_details(UpiPayment(vpa="a@b")) == {"vpa": "a@b"}


def test_card_number_and_cvv_are_hidden_from_repr() -> None:
    text = repr(_card())
    assert "4111" not in text
    assert "123" not in text


def test_parse_payment_selection_dispatches_on_method() -> None:
    assert isinstance(parse_payment_selection({"method": "CASH"}), CashPayment)
    upi = parse_payment_selection({"method": "upi", "vpa": "x@y"})
    assert isinstance(upi, UpiPayment)
    assert upi.vpa == "x@y"
    with pytest.raises(PydanticValidationError):
        parse_payment_selection({"method": "cheque"})
    with pytest.raises(PydanticValidationError):
        parse_payment_selection({"method": "cash", "vpa": "x@y"})
