from io import BytesIO

import pandas as pd

from qr_ordering.services.excel_manager import ExcelManager
from qr_ordering.tasks import clear_sales_ledger, export_sale_to_excel, health_check


def sale(order_id, total):
    return {
        "sale_id": f"sale-{order_id}",
        "order_id": order_id,
        "restaurant": "Warung Nusantara",
        "table_number": "5",
        "cashier": "Budi",
        "items": "Nasi Goreng x1",
        "total_price": total,
        "payment_method": "cash",
        "created_at": "2026-05-14T12:00:00+00:00",
    }


def test_export_appends_to_ledger(client):
    first = export_sale_to_excel.apply(args=[sale("order-1", 25000)]).get()
    second = export_sale_to_excel.apply(args=[sale("order-2", 30000)]).get()

    assert first["success"] and second["success"]
    assert "processing_time_seconds" in first

    df = pd.read_excel(ExcelManager.sales_file(), engine="openpyxl")
    assert list(df.columns) == ExcelManager.SALES_COLUMNS
    assert list(df["order_id"]) == ["order-1", "order-2"]
    assert df["total_price"].sum() == 55000


def test_clear_sales_ledger(client):
    export_sale_to_excel.apply(args=[sale("order-1", 25000)]).get()
    assert len(ExcelManager.get_all_sales()) == 1

    result = clear_sales_ledger.apply().get()
    assert result["success"] is True
    assert ExcelManager.get_all_sales() == []


def test_health_check_task():
    assert health_check.apply().get()["status"] == "healthy"


def test_build_workbook_and_csv():
    rows = [{"name": "Es Teh", "quantity": 4}, {"name": "Nasi Goreng", "quantity": 2}]

    content = ExcelManager.build_workbook(rows, ["name", "quantity"], headers={"name": "Item"})
    df = pd.read_excel(BytesIO(content), engine="openpyxl")
    assert list(df.columns) == ["Item", "quantity"]

    csv = ExcelManager.build_csv(rows, ["name", "quantity"])
    assert csv.splitlines() == ["name,quantity", "Es Teh,4", "Nasi Goreng,2"]
