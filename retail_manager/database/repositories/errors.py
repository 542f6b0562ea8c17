from __future__ import annotations


# Domain-level error the caller can surface directly (message is user-facing)
class DomainError(Exception):
    pass


class CustomerHasReceiptsError(DomainError):
    """Raised when deleting a customer that still owns receipts."""

    def __init__(self, customer_id: int, receipt_count: int):
        super().__init__(
            "This customer cannot be deleted because there are receipts associated with it. "
            "Delete the customer's receipts first."
        )
        self.customer_id = customer_id
        self.receipt_count = receipt_count
