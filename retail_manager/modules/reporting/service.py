# retail_manager/modules/reporting/service.py
from __future__ import annotations

from dataclasses import dataclass, field
import logging
import sqlite3
from typing import Dict, List, Set

from ...constants import REMOVED_PRODUCT_LABEL, TOP_PRODUCTS_LIMIT, UNSPECIFIED_PAYMENT_METHOD
from ...database.repositories.products_repo import ProductsRepo
from ...database.repositories.receipts_repo import ReceiptsRepo
from ...utils.helpers import DateLike, day_bounds, fmt_period, to_date
from ..receipts.calculations import cost_is_known, item_cost, line_total

_log = logging.getLogger(__name__)


class ReportGenerationError(Exception):
    """The sales report could not be produced; no partial report is returned."""


@dataclass
class TopProduct:
    product_id: int
    name: str
    quantity: int
    total: float


@dataclass
class SalesReport:
    period: str
    total_receipts: int = 0
    total_amount: float = 0.0
    payment_method_totals: Dict[str, float] = field(default_factory=dict)
    top_products: List[TopProduct] = field(default_factory=list)
    average_warranty_months: float = 0.0
    total_cost: float = 0.0
    total_profit: float = 0.0
    # removed products whose new items were costed as zero
    unresolved_product_ids: List[int] = field(default_factory=list)


class ReportService:
    """
    Sales report for an inclusive range of calendar dates.

    Sums are taken over the receipt lines (price * quantity), not over the
    stored receipt totals. Cost and profit are accumulated line by line.
    """

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        self.receipts = ReceiptsRepo(conn)
        self.products = ProductsRepo(conn)

    def generate_report(self, start_date: DateLike, end_date: DateLike) -> SalesReport:
        try:
            start, end = to_date(start_date), to_date(end_date)
        except ValueError as e:
            raise ReportGenerationError(str(e)) from e
        if start > end:
            raise ReportGenerationError(
                f"Start date {start.isoformat()} is after end date {end.isoformat()}."
            )

        lo, hi = day_bounds(start, end)
        try:
            receipts = self.receipts.list_in_range(lo, hi)
            products = self.products.sold_between(lo, hi)
        except sqlite3.Error as e:
            _log.error("report %s..%s failed while fetching receipts", lo, hi, exc_info=True)
            raise ReportGenerationError(f"Report generation failed: {e}") from e

        _log.info("report %s..%s: %d receipt(s)", start, end, len(receipts))

        report = SalesReport(period=fmt_period(start, end), total_receipts=len(receipts))
        quantities: Dict[int, Dict[str, float]] = {}
        uncosted: Set[int] = set()
        warranty_months = 0

        for receipt in receipts:
            header = receipt.header
            receipt_amount = 0.0
            for it in receipt.items:
                amount = line_total(it)
                cost = item_cost(it, products)
                receipt_amount += amount
                report.total_cost += cost
                report.total_profit += amount - cost
                if not cost_is_known(it, products):
                    uncosted.add(it.product_id)

                agg = quantities.setdefault(it.product_id, {"quantity": 0, "total": 0.0})
                agg["quantity"] += it.quantity
                agg["total"] += amount

            report.total_amount += receipt_amount
            method = (header.payment_method or "").strip() or UNSPECIFIED_PAYMENT_METHOD
            report.payment_method_totals[method] = (
                report.payment_method_totals.get(method, 0.0) + receipt_amount
            )
            warranty_months += header.warranty_duration_months or 0

        if receipts:
            report.average_warranty_months = warranty_months / len(receipts)

        missing = sorted(uncosted)
        for pid in missing:
            _log.warning("product %s sold in %s no longer exists; costed as zero", pid, report.period)
        report.unresolved_product_ids = missing

        ranked = [
            TopProduct(
                product_id=pid,
                name=products[pid].display_name if pid in products else REMOVED_PRODUCT_LABEL,
                quantity=int(agg["quantity"]),
                total=agg["total"],
            )
            for pid, agg in quantities.items()
        ]
        ranked.sort(key=lambda p: (-p.quantity, p.name.lower(), p.product_id))
        report.top_products = ranked[:TOP_PRODUCTS_LIMIT]
        return report
