# retail_manager/modules/receipts/warranties.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
import sqlite3
from typing import List, Optional

from ...constants import DEFAULT_WARRANTY_WATCH_DAYS
from ...database.repositories.receipts_repo import ReceiptsRepo
from ...utils.helpers import to_date, whatsapp_url


@dataclass
class ExpiringWarranty:
    receipt_id: int
    customer_name: str
    customer_phone: str | None
    expires_at: date
    days_remaining: int

    def reminder_message(self) -> str:
        return (
            f"Hello {self.customer_name}! Your warranty expires on "
            f"{self.expires_at.strftime('%d/%m/%Y')}. Get in touch if you need anything."
        )

    def whatsapp_link(self) -> Optional[str]:
        """wa.me link with the reminder text, or None when there is no usable phone."""
        try:
            return whatsapp_url(self.customer_phone or "", self.reminder_message())
        except ValueError:
            return None


def expiring_warranties(
    conn: sqlite3.Connection,
    days: int = DEFAULT_WARRANTY_WATCH_DAYS,
    today: date | None = None,
) -> List[ExpiringWarranty]:
    """Warranties ending between today and today + days (inclusive), soonest first."""
    if days < 0:
        raise ValueError("days must be >= 0")
    today = today or date.today()
    out: List[ExpiringWarranty] = []
    for r in ReceiptsRepo(conn).list_expiring_warranties(today, days):
        expires = to_date(r["warranty_expires_at"])
        out.append(
            ExpiringWarranty(
                receipt_id=int(r["receipt_id"]),
                customer_name=r["customer_name"],
                customer_phone=r["customer_phone"],
                expires_at=expires,
                days_remaining=(expires - today).days,
            )
        )
    return out
