from datetime import datetime, timezone

from qr_ordering.core.config import Settings
from qr_ordering.models import Order, OrderItem, OrderStatus, Restaurant
from qr_ordering.services.receipt import format_money, make_columns, render_receipt


def test_format_money():
    assert format_money(25000, "Rp") == "Rp 25.000"
    assert format_money(1234567.4, "Rp") == "Rp 1.234.567"
    assert format_money(0, "Rp") == "Rp 0"
    assert format_money(-5000, "Rp") == "-Rp 5.000"
    assert format_money(None, "Rp") == "Rp 0"


def test_columns_pads_and_truncates():
    columns = make_columns(20)

    assert columns("Table", "7") == "Table" + " " * 13 + " 7"
    assert len(columns("Table", "7")) == 20

    squeezed = columns("A very long menu item name", "Rp 5.000")
    assert len(squeezed) == 20
    assert squeezed.endswith(" Rp 5.000")
    assert "~" in squeezed


def make_order():
    order = Order(
        id="0f8fad5b-d9cb-469f-a165-70867728950e",
        table_number="12",
        status=OrderStatus.COMPLETED,
        created_at=datetime(2026, 3, 1, 11, 55, tzinfo=timezone.utc),
        completed_at=datetime(2026, 3, 1, 12, 5, tzinfo=timezone.utc),
    )
    order.restaurant = Restaurant(name="Warung Nusantara", location="Jl. Merdeka 10")
    order.items = [
        OrderItem(name_snapshot="Nasi Goreng", price_snapshot=25000, quantity=2, position=0),
        OrderItem(name_snapshot="Es Teh", price_snapshot=5000, quantity=1, position=1),
    ]
    return order


def test_render_receipt_layout():
    settings = Settings(receipt_width=32, currency_prefix="Rp", receipt_footer="Terima kasih!")
    order = make_order()
    text = render_receipt(order, "Budi", settings=settings)
    lines = text.splitlines()

    assert lines[0].strip() == "Warung Nusantara"
    assert lines[1].strip() == "Jl. Merdeka 10"
    assert lines[2] == "-" * 32
    assert "0f8fad5b-d9cb-469f-a165-70867728950e" in lines
    assert any(l.startswith("Cashier") and l.endswith("Budi") for l in lines)
    assert any(l.endswith("2026-03-01 12:05 UTC") for l in lines)
    assert any(l.startswith("Nasi Goreng x2") and l.endswith("Rp 50.000") for l in lines)
    assert any(l.startswith("Es Teh x1") and l.endswith("Rp 5.000") for l in lines)
    assert any(l.startswith("TOTAL") and l.endswith("Rp 55.000") for l in lines)
    assert lines[-1].strip() == "Terima kasih!"
    # the order id is printed whole even when wider than the paper
    assert all(len(l) <= 32 for l in lines if l != order.id)


def test_render_receipt_without_location():
    order = make_order()
    order.restaurant.location = None
    settings = Settings(receipt_width=32)

    lines = render_receipt(order, "Budi", settings=settings).splitlines()
    assert lines[1] == "-" * 32
