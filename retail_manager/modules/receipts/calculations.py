# retail_manager/modules/receipts/calculations.py
"""
Cost and profit of receipt lines.

Used goods are costed at the manual cost typed in at the counter; new goods
at the product's current default price. A product that no longer exists
costs nothing. None of these helpers raise.
"""
from __future__ import annotations

from typing import Iterable, Mapping

from ...constants import CONDITION_USED


def _num(v) -> float:
    try:
        return float(v)
    except (TypeError, ValueError):
        return 0.0


def line_total(item) -> float:
    return _num(item.price) * _num(item.quantity)


def item_cost(item, products_by_id: Mapping[int, object]) -> float:
    quantity = _num(item.quantity)
    if item.condition == CONDITION_USED and item.manual_cost is not None:
        return _num(item.manual_cost) * quantity
    product = products_by_id.get(item.product_id)
    if product is None:
        return 0.0
    return _num(product.default_price) * quantity


def cost_is_known(item, products_by_id: Mapping[int, object]) -> bool:
    """False when item_cost fell back to zero because the product is gone."""
    if item.condition == CONDITION_USED and item.manual_cost is not None:
        return True
    return item.product_id in products_by_id


def item_profit(item, products_by_id: Mapping[int, object]) -> float:
    return line_total(item) - item_cost(item, products_by_id)


def receipt_totals(items: Iterable, installments: int = 1) -> tuple[float, float]:
    """
    Returns (total, installment_value), both rounded to cents.
    Fewer than one installment is treated as a single payment.
    """
    total = round(sum(line_total(it) for it in items), 2)
    try:
        n = max(1, int(installments))
    except (TypeError, ValueError):
        n = 1
    return total, round(total / n, 2)
