from __future__ import annotations
from contextlib import contextmanager
import sqlite3


class ReceiptNumbersRepo:
    """
    The printed receipt number: one counter row shared by every process that
    opens the database. Numbers are handed out under a write lock, so two
    callers never receive the same value.
    """

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        self.conn.row_factory = sqlite3.Row

    @contextmanager
    def _immediate_tx(self):
        cur = self.conn.cursor()
        try:
            cur.execute("BEGIN IMMEDIATE")
            yield cur
            self.conn.commit()
        except Exception:
            self.conn.rollback()
            raise
        finally:
            cur.close()

    def next_number(self) -> int:
        with self._immediate_tx() as cur:
            cur.execute(
                "INSERT OR IGNORE INTO receipt_number_sequence(id, last_number) VALUES (1, 0)"
            )
            cur.execute("UPDATE receipt_number_sequence SET last_number = last_number + 1 WHERE id = 1")
            row = cur.execute("SELECT last_number FROM receipt_number_sequence WHERE id = 1").fetchone()
            return int(row[0])

    def peek(self) -> int:
        """Last number handed out (0 before the first receipt)."""
        row = self.conn.execute(
            "SELECT last_number FROM receipt_number_sequence WHERE id = 1"
        ).fetchone()
        return int(row[0]) if row else 0
