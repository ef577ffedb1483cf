from __future__ import annotations

from decimal import Decimal

import pytest

from pos_helpers import FakeRemoteStore, RecordingPrinter, make_order
from storefront_pos.local_store import JsonListFile
from storefront_pos.models_orders import CustomerRef, OrderLine
from storefront_pos.persistence import LocalOrderCache, OrderPersistenceCoordinator
from storefront_pos.receipt import GUEST_CUSTOMER_NAME, build_bill_data, reprint_last_bill


def test_bill_for_walk_in_customer() -> None:
    bill = build_bill_data(make_order("ord-1"))

    assert bill.bill_number == "INV-ord-1"
    assert bill.date == "15 March 2024"
    assert bill.customer.name == GUEST_CUSTOMER_NAME
    assert bill.customer.phone == "-"
    assert bill.payment_method == "Cash"
    assert bill.total == Decimal("1062.00")
    assert bill.items[0].name == "Widget"
    assert bill.change_amount is None


def test_bill_amounts_are_rounded_for_display() -> None:
    line = OrderLine(
        product_id="p-1",
        product_name="Loose tea",
        quantity=3,
        unit_price=Decimal("33.335"),
        line_total=Decimal("100.005"),
    )
    order = make_order(lines=(line,), total="118.0059", customer=CustomerRef(name="Asha", phone="98765"))

    bill = build_bill_data(order, amount_received=Decimal("200"))

    assert bill.items[0].price == Decimal("33.34")
    assert bill.items[0].total == Decimal("100.01")
    assert bill.total == Decimal("118.01")
    assert bill.change_amount == Decimal("81.99")
    assert bill.customer.name == "Asha"


def test_reprint_last_bill_uses_latest_cached_order() -> None:
    coordinator = OrderPersistenceCoordinator(FakeRemoteStore(), LocalOrderCache(JsonListFile()))
    printer = RecordingPrinter()
    with pytest.raises(LookupError):
        reprint_last_bill(coordinator, printer)

    coordinator.commit(make_order("ord-1"))
    coordinator.commit(make_order("ord-2", method="upi"))
    bill = reprint_last_bill(coordinator, printer)

    assert bill.bill_number == "INV-ord-2"
    assert bill.payment_method == "UPI"
    assert printer.bills == [bill]
