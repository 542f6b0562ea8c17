# retail_manager/modules/reporting/excel_export.py
from __future__ import annotations

import logging
from pathlib import Path

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from .service import SalesReport

_log = logging.getLogger(__name__)

SUMMARY_SHEET = "Summary"
PRODUCTS_SHEET = "Products"

_MONEY_FORMAT = '"R$" #,##0.00'
_THIN = Side(style="thin")
_BORDER = Border(left=_THIN, right=_THIN, top=_THIN, bottom=_THIN)


def report_filename(report: SalesReport) -> str:
    """'report-01-01-2024 - 31-01-2024.xlsx' for period '01/01/2024 - 31/01/2024'."""
    return f"report-{report.period.replace('/', '-')}.xlsx"


def _header_row(ws, row: int, headers: list[str]) -> None:
    for c, h in enumerate(headers, start=1):
        cell = ws.cell(row=row, column=c, value=h)
        cell.font = Font(bold=True, color="FFFFFF")
        cell.fill = PatternFill("solid", fgColor="003366")
        cell.alignment = Alignment(horizontal="center")
        cell.border = _BORDER


def _autosize(ws) -> None:
    for i in range(1, ws.max_column + 1):
        letter = get_column_letter(i)
        longest = max((len(str(c.value)) for c in ws[letter] if c.value is not None), default=0)
        ws.column_dimensions[letter].width = min(longest + 2, 50)


def build_report_workbook(report: SalesReport, *, include_costs: bool = True) -> Workbook:
    """
    Two sheets: "Summary" (period, totals, payment-method breakdown) and
    "Products" (top products by quantity). Amounts are written as numbers
    with a currency format.
    """
    wb = Workbook()

    ws = wb.active
    ws.title = SUMMARY_SHEET
    ws.cell(row=1, column=1, value="Sales Report").font = Font(size=14, bold=True)
    ws.append(["Period:", report.period])
    ws.append([])
    ws.append(["Total receipts:", report.total_receipts])
    ws.append(["Total amount:", report.total_amount])
    ws.cell(row=ws.max_row, column=2).number_format = _MONEY_FORMAT
    ws.append(["Average warranty (months):", round(report.average_warranty_months, 1)])
    if include_costs:
        for label, value in (("Total cost:", report.total_cost), ("Total profit:", report.total_profit)):
            ws.append([label, value])
            ws.cell(row=ws.max_row, column=2).number_format = _MONEY_FORMAT
    ws.append([])
    ws.append(["Sales by payment method"])
    ws.cell(row=ws.max_row, column=1).font = Font(size=12, bold=True)
    _header_row(ws, ws.max_row + 1, ["Payment method", "Total"])
    for method, total in report.payment_method_totals.items():
        ws.append([method, total])
        ws.cell(row=ws.max_row, column=2).number_format = _MONEY_FORMAT
    _autosize(ws)

    ws = wb.create_sheet(PRODUCTS_SHEET)
    ws.cell(row=1, column=1, value="Top 10 best-selling products").font = Font(size=14, bold=True)
    _header_row(ws, 2, ["Product", "Quantity", "Total"])
    for p in report.top_products:
        ws.append([p.name, p.quantity, p.total])
        ws.cell(row=ws.max_row, column=3).number_format = _MONEY_FORMAT
    _autosize(ws)

    return wb


def export_report_xlsx(report: SalesReport, directory: str | Path, *, include_costs: bool = True) -> Path:
    """Write the workbook into `directory` and return the file path."""
    out_dir = Path(directory)
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / report_filename(report)
    build_report_workbook(report, include_costs=include_costs).save(path)
    _log.info("report exported to %s", path)
    return path
