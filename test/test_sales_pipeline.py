import random
import re
from datetime import datetime

import pytest

from conftest import FixedClock, make_services, sale_item
from possuite.config import PosSettings
from possuite.domain.errors import (
    EmptyCart,
    InsufficientPayment,
    InsufficientStock,
    NotFoundError,
    ProductNotFound,
    ValidationError,
)
from possuite.services.sales_service import generate_receipt_number, to_base36


def test_sale_totals_and_change():
    svc = make_services()

    sale = svc.sales.process_sale(
        [sale_item("123", "Widget", 10.0, 2), sale_item("456", "Gadget", 5.0, 1)],
        "cash",
        30.0,
        "alice",
        "store-001",
        "Main Store",
    ).unwrap()

    assert (sale.subtotal, sale.tax, sale.total, sale.change) == (25.0, 0.0, 25.0, 5.0)
    assert sale.amount_paid >= sale.total
    assert sale.change == sale.amount_paid - sale.total
    assert svc.catalog.find_by_barcode("123").stock == 3
    assert svc.catalog.find_by_barcode("456").stock == 9
    assert svc.sales.all_sales()[0] == sale


def test_insufficient_payment_changes_nothing():
    svc = make_services()

    result = svc.sales.process_sale(
        [sale_item("123", "Widget", 10.0, 2), sale_item("456", "Gadget", 5.0, 1)], "cash", 20.0, "alice"
    )

    assert isinstance(result.error, InsufficientPayment)
    assert result.message == "Insufficient payment amount"
    assert svc.catalog.find_by_barcode("123").stock == 5
    assert svc.sales.all_sales() == []


def test_one_failing_line_aborts_the_whole_sale():
    svc = make_services()

    result = svc.sales.process_sale(
        [sale_item("123", "Widget", 10.0, 2), sale_item("456", "Gadget", 5.0, 11)], "card", 500.0, "alice"
    )

    assert isinstance(result.error, InsufficientStock)
    assert result.message == "Insufficient stock for Gadget. Available: 10"
    assert svc.catalog.find_by_barcode("123").stock == 5
    assert svc.catalog.find_by_barcode("456").stock == 10
    assert svc.sales.all_sales() == []


def test_repeated_lines_are_checked_cumulatively():
    svc = make_services()

    result = svc.sales.process_sale(
        [sale_item("123", "Widget", 10.0, 3), sale_item("123", "Widget", 10.0, 3)], "cash", 60.0, "alice"
    )

    assert isinstance(result.error, InsufficientStock)
    assert svc.catalog.find_by_barcode("123").stock == 5


def test_empty_unknown_and_invalid_inputs():
    svc = make_services()

    assert isinstance(svc.sales.process_sale([], "cash", 10.0, "alice").error, EmptyCart)
    missing = svc.sales.process_sale([sale_item("000", "Ghost", 1.0, 1)], "cash", 10.0, "alice")
    assert isinstance(missing.error, ProductNotFound)
    assert missing.message == "Product Ghost not found"
    bad_method = svc.sales.process_sale([sale_item("123", "Widget", 10.0, 1)], "cheque", 10.0, "alice")
    assert isinstance(bad_method.error, ValidationError)


def test_tax_rate_is_applied_from_settings():
    svc = make_services(settings=PosSettings(tax_rate=0.1))

    sale = svc.sales.process_sale([sale_item("123", "Widget", 10.0, 2)], "cash", 22.0, "alice").unwrap()

    assert sale.tax == 2.0
    assert sale.total == sale.subtotal + sale.tax == 22.0
    assert sale.change == 0.0


def test_sales_are_stored_newest_first():
    clock = FixedClock()
    svc = make_services(clock=clock)
    first = svc.sales.process_sale([sale_item("456", "Gadget", 5.0, 1)], "cash", 5.0, "alice").unwrap()
    clock.advance(minutes=5)
    second = svc.sales.process_sale([sale_item("456", "Gadget", 5.0, 1)], "card", 5.0, "bob").unwrap()

    assert [s.id for s in svc.sales.all_sales()] == [second.id, first.id]


def test_receipt_number_format():
    number = generate_receipt_number(datetime(2024, 3, 15, 10, 0), random.Random(1))
    assert re.fullmatch(r"RCP-[0-9A-Z]+-[0-9A-Z]{3}", number)
    assert to_base36(0) == "0"
    assert to_base36(35) == "Z"
    assert to_base36(36) == "10"


def test_receipt_numbers_are_distinct_in_a_burst():
    svc = make_services(products=None)
    svc.stock.restock("456", 100, "alice").unwrap()
    receipts = set()
    for _ in range(50):
        sale = svc.sales.process_sale([sale_item("456", "Gadget", 5.0, 1)], "cash", 5.0, "alice").unwrap()
        receipts.add(sale.receipt_number)
    assert len(receipts) == 50


def test_lookup_by_receipt_range_and_store():
    clock = FixedClock(datetime(2024, 3, 15, 9, 0))
    svc = make_services(clock=clock)
    a = svc.sales.process_sale([sale_item("456", "Gadget", 5.0, 1)], "cash", 5.0, "alice", "store-001", "Main").unwrap()
    clock.advance(days=1)
    b = svc.sales.process_sale([sale_item("456", "Gadget", 5.0, 1)], "cash", 5.0, "bob", "store-002", "North").unwrap()

    assert svc.sales.by_receipt_number(a.receipt_number.lower()) == a
    assert svc.sales.by_receipt_number("RCP-NOPE") is None
    assert svc.sales.all_sales("store-002") == [b]
    assert svc.sales.by_date_range(datetime(2024, 3, 15), datetime(2024, 3, 15, 23, 59)) == [a]
    assert svc.sales.today() == [b]
    assert svc.sales.today("store-001") == []


def test_verify_return_checks_receipt_without_mutating():
    svc = make_services()
    sale = svc.sales.process_sale([sale_item("123", "Widget", 10.0, 2)], "cash", 20.0, "alice").unwrap()

    check = svc.sales.verify_return(sale.receipt_number, "123", 1).unwrap()
    assert check.refund_amount == 10.0
    assert check.sold_quantity == 2

    assert isinstance(svc.sales.verify_return(sale.receipt_number, "123", 3).error, ValidationError)
    assert isinstance(svc.sales.verify_return(sale.receipt_number, "456", 1).error, NotFoundError)
    assert isinstance(svc.sales.verify_return("RCP-X", "123", 1).error, NotFoundError)
    assert svc.catalog.find_by_barcode("123").stock == 3

    with pytest.raises(ValidationError):
        svc.sales.verify_return(sale.receipt_number, "123", 0).unwrap()


@pytest.mark.parametrize("paid", [float("nan"), float("inf")])
def test_non_finite_payment_is_rejected_without_side_effects(paid):
    svc = make_services()

    result = svc.sales.process_sale([sale_item("123", "Widget", 10.0, 1)], "cash", paid, "alice")

    assert isinstance(result.error, InsufficientPayment)
    assert svc.catalog.find_by_barcode("123").stock == 5
    assert svc.sales.all_sales() == []


def test_sales_history_search_by_text_and_period():
    clock = FixedClock(datetime(2024, 3, 1, 9, 0))
    svc = make_services(clock=clock)
    old = svc.sales.process_sale([sale_item("123", "Widget", 10.0, 1)], "cash", 10.0, "bob").unwrap()
    clock.advance(days=10)
    week = svc.sales.process_sale([sale_item("456", "Gadget", 5.0, 1)], "card", 5.0, "alice").unwrap()
    clock.advance(days=4, hours=2)
    today = svc.sales.process_sale(
        [sale_item("123", "Widget", 10.0, 1), sale_item("456", "Gadget", 5.0, 1)], "cash", 15.0, "Alice"
    ).unwrap()

    assert [s.id for s in svc.sales.search()] == [today.id, week.id, old.id]
    assert [s.id for s in svc.sales.search("ALICE")] == [today.id, week.id]
    assert [s.id for s in svc.sales.search("widget")] == [today.id, old.id]
    assert [s.id for s in svc.sales.search(old.receipt_number.lower())] == [old.id]
    assert [s.id for s in svc.sales.search(period="today")] == [today.id]
    assert [s.id for s in svc.sales.search(period="week")] == [today.id, week.id]
    assert [s.id for s in svc.sales.search("bob", period="month")] == [old.id]
    assert svc.sales.search("nobody") == []

    with pytest.raises(ValidationError):
        svc.sales.search(period="year")
