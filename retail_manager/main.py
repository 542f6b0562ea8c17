# retail_manager/main.py
"""
Command-line entry point.

    retail-manager init-db
    retail-manager report 2024-01-01 2024-01-31 [--xlsx DIR] [--role seller]
    retail-manager receipt-pdf 42 [--out DIR]
    retail-manager warranties [--days 14]
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .config import DB_PATH
from .constants import APP_NAME, DEFAULT_WARRANTY_WATCH_DAYS, ROLE_ADMIN, ROLES
from .database import get_connection
from .database.repositories import CustomersRepo, DomainError, EmployeesRepo, ReceiptsRepo
from .modules.receipts.document import DocumentError, ReceiptDocumentComposer
from .modules.receipts.warranties import expiring_warranties
from .modules.reporting import ReportGenerationError, ReportService
from .utils.helpers import fmt_date, fmt_money
from .utils.loggers import get_logger
from .utils.permissions import can_view_costs

_log = logging.getLogger(__name__)


def _cmd_init_db(conn, args) -> int:
    print(f"✓ Database ready at {args.db}")
    return 0


def _cmd_report(conn, args) -> int:
    report = ReportService(conn).generate_report(args.start, args.end)
    show_costs = can_view_costs(args.role)

    print(f"Sales report {report.period}")
    print(f"  Receipts:          {report.total_receipts}")
    print(f"  Total amount:      {fmt_money(report.total_amount)}")
    print(f"  Avg. warranty:     {report.average_warranty_months:.1f} months")
    if show_costs:
        print(f"  Total cost:        {fmt_money(report.total_cost)}")
        print(f"  Total profit:      {fmt_money(report.total_profit)}")
    if report.payment_method_totals:
        print("  By payment method:")
        for method, total in report.payment_method_totals.items():
            print(f"    {method:<16} {fmt_money(total)}")
    if report.top_products:
        print("  Top products:")
        for p in report.top_products:
            print(f"    {p.quantity:>4} x {p.name:<32} {fmt_money(p.total)}")
    if report.unresolved_product_ids and show_costs:
        ids = ", ".join(str(i) for i in report.unresolved_product_ids)
        print(f"  Warning: cost unknown for removed product(s) {ids}")

    if args.xlsx:
        from .modules.reporting.excel_export import export_report_xlsx

        path = export_report_xlsx(report, args.xlsx, include_costs=show_costs)
        print(f"✓ Spreadsheet written to {path}")
    return 0


def _cmd_receipt_pdf(conn, args) -> int:
    receipt = ReceiptsRepo(conn).get_with_items(args.receipt_id)
    if receipt is None:
        raise DomainError(f"Receipt {args.receipt_id} not found.")
    customer = CustomersRepo(conn).get(receipt.header.customer_id)
    employee = EmployeesRepo(conn).get(receipt.header.employee_id)
    doc = ReceiptDocumentComposer(conn).compose(receipt.header, customer, receipt.items, employee)
    path = doc.save(args.out)
    print(f"✓ Receipt no. {doc.receipt_number} written to {path}")
    return 0


def _cmd_warranties(conn, args) -> int:
    rows = expiring_warranties(conn, days=args.days)
    if not rows:
        print(f"No warranties expiring in the next {args.days} day(s).")
        return 0
    for w in rows:
        link = w.whatsapp_link() or "-"
        print(
            f"#{w.receipt_id:<6} {w.customer_name:<30} {fmt_date(w.expires_at)} "
            f"({w.days_remaining} day(s))  {link}"
        )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="retail-manager", description=f"{APP_NAME} back office")
    parser.add_argument("--db", default=str(DB_PATH), help="Path to SQLite DB")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug details")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("init-db", help="Create or upgrade the database schema")
    p.set_defaults(func=_cmd_init_db)

    p = sub.add_parser("report", help="Sales report for an inclusive date range")
    p.add_argument("start", help="First day, YYYY-MM-DD")
    p.add_argument("end", help="Last day, YYYY-MM-DD")
    p.add_argument("--xlsx", metavar="DIR", help="Also export the report workbook into DIR")
    p.add_argument("--role", choices=ROLES, default=ROLE_ADMIN, help="Role of the person reading the report")
    p.set_defaults(func=_cmd_report)

    p = sub.add_parser("receipt-pdf", help="Compose the printable receipt of a sale")
    p.add_argument("receipt_id", type=int)
    p.add_argument("--out", default=".", metavar="DIR", help="Output directory")
    p.set_defaults(func=_cmd_receipt_pdf)

    p = sub.add_parser("warranties", help="List warranties that are about to expire")
    p.add_argument("--days", type=int, default=DEFAULT_WARRANTY_WATCH_DAYS)
    p.set_defaults(func=_cmd_warranties)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    get_logger(verbose=args.verbose)
    conn = get_connection(Path(args.db))
    try:
        return args.func(conn, args)
    except (DomainError, ReportGenerationError, DocumentError, PermissionError, ValueError) as e:
        _log.debug("command %s failed", args.command, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        conn.close()


if __name__ == "__main__":
    sys.exit(main())
