import pytest
from openpyxl import load_workbook

from retail_manager.modules.reporting.excel_export import (
    PRODUCTS_SHEET,
    SUMMARY_SHEET,
    export_report_xlsx,
    report_filename,
)
from retail_manager.modules.reporting.service import SalesReport, TopProduct


def _report():
    return SalesReport(
        period="01/01/2024 - 31/01/2024",
        total_receipts=3,
        total_amount=350.0,
        payment_method_totals={"Cash": 300.0, "PIX": 50.0},
        top_products=[
            TopProduct(product_id=1, name="iPhone 13", quantity=3, total=300.0),
            TopProduct(product_id=2, name="Charger", quantity=1, total=50.0),
        ],
        average_warranty_months=4.0,
        total_cost=200.0,
        total_profit=150.0,
    )


def _rows(ws):
    return [tuple(c for c in row if c is not None) for row in ws.iter_rows(values_only=True)]


def test_filename_replaces_slashes():
    assert report_filename(_report()) == "report-01-01-2024 - 31-01-2024.xlsx"


def test_workbook_has_summary_and_products(tmp_path):
    path = export_report_xlsx(_report(), tmp_path)
    assert path.name == "report-01-01-2024 - 31-01-2024.xlsx"

    wb = load_workbook(path)
    assert wb.sheetnames == [SUMMARY_SHEET, PRODUCTS_SHEET]

    summary = _rows(wb[SUMMARY_SHEET])
    assert ("Period:", "01/01/2024 - 31/01/2024") in summary
    assert ("Total receipts:", 3) in summary
    assert ("Total amount:", 350.0) in summary
    assert ("Total profit:", 150.0) in summary
    assert ("Cash", 300.0) in summary
    assert ("PIX", 50.0) in summary

    products = _rows(wb[PRODUCTS_SHEET])
    assert products[1] == ("Product", "Quantity", "Total")
    assert products[2:] == [("iPhone 13", 3, 300.0), ("Charger", 1, 50.0)]


def test_costs_can_be_left_out(tmp_path):
    path = export_report_xlsx(_report(), tmp_path, include_costs=False)
    labels = [row[0] for row in _rows(load_workbook(path)[SUMMARY_SHEET]) if row]
    assert "Total cost:" not in labels
    assert "Total profit:" not in labels
    assert "Total amount:" in labels


@pytest.mark.parametrize("avg", [0.0, 2.25])
def test_average_warranty_is_rounded(tmp_path, avg):
    report = _report()
    report.average_warranty_months = avg
    summary = _rows(load_workbook(export_report_xlsx(report, tmp_path))[SUMMARY_SHEET])
    assert ("Average warranty (months):", round(avg, 1)) in summary
