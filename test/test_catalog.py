import pytest

from conftest import make_services, sale_item
from possuite.domain.errors import NotFoundError, StateError, ValidationError


def test_add_rejects_duplicate_barcode_and_bad_values():
    svc = make_services()

    dup = svc.catalog.add("123", "Another", 3.0, 1, "Other")
    assert not dup.success
    assert dup.message == "Barcode already exists"
    assert isinstance(dup.error, ValidationError)

    assert svc.catalog.add("999", "Free", 0, 1).message == "Price must be positive"
    assert svc.catalog.add("999", "Neg", 1.0, -1).message == "Stock cannot be negative"
    assert not svc.catalog.add("999", "Odd", 1.0, 1, "Toys").success

    ok = svc.catalog.add("999", "Lamp", 15.0, 2, "Furniture")
    assert ok.success
    assert svc.catalog.find_by_barcode("999").name == "Lamp"


def test_update_enforces_barcode_uniqueness_and_validation():
    svc = make_services()

    assert svc.catalog.update("123", barcode="456").message == "Barcode already exists"
    assert svc.catalog.update("123", price=-1).message == "Price must be positive"

    renamed = svc.catalog.update("123", barcode="321", name="Widget Pro").unwrap()
    assert renamed.barcode == "321"
    assert svc.catalog.find_by_barcode("123") is None

    with pytest.raises(NotFoundError):
        svc.catalog.update("nope", price=2.0).unwrap()


def test_delete_refuses_products_with_recorded_sales():
    svc = make_services()
    svc.sales.process_sale([sale_item("123", "Widget", 10.0, 1)], "cash", 10.0, "alice").unwrap()

    with pytest.raises(StateError):
        svc.catalog.delete("123").unwrap()

    assert svc.catalog.delete("456").success
    assert svc.catalog.find_by_barcode("456") is None
    assert not svc.catalog.delete("456").success


def test_search_and_sort():
    svc = make_services()

    assert [p.barcode for p in svc.catalog.search("GAD")] == ["456"]
    assert [p.barcode for p in svc.catalog.search("78")] == ["789"]
    assert len(svc.catalog.search("  ")) == 3

    by_price = svc.catalog.sort(svc.catalog.list_products(), "price", "desc")
    assert [p.price for p in by_price] == [10.0, 5.0, 2.5]
    by_name = svc.catalog.sort(svc.catalog.list_products(), "name")
    assert [p.name for p in by_name] == ["Cable", "Gadget", "Widget"]

    with pytest.raises(ValidationError):
        svc.catalog.sort([], "colour")


def test_stock_level_queries():
    svc = make_services()

    assert [p.barcode for p in svc.catalog.out_of_stock()] == ["789"]
    assert [p.barcode for p in svc.catalog.low_stock(6)] == ["123"]


@pytest.mark.parametrize("price", [float("nan"), float("inf")])
def test_non_finite_price_is_rejected(price):
    svc = make_services()

    added = svc.catalog.add("999", "Thing", price, 1, "Other")
    assert isinstance(added.error, ValidationError)
    assert added.message == "Price must be positive"
    assert svc.catalog.find_by_barcode("999") is None

    updated = svc.catalog.update("123", price=price)
    assert isinstance(updated.error, ValidationError)
    assert svc.catalog.find_by_barcode("123").price == 10.0
