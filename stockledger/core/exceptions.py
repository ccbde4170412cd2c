"""
Domain exceptions for the inventory core.

Every workflow failure is one of these types. Each carries a machine-readable
``code`` and a ``details`` dict; ``to_dict()`` is the structured value the
calling layer renders for users.
"""

from typing import Any


class StockLedgerError(Exception):
    """Base exception for all inventory core errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for the calling layer."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# State machine
class InvalidTransitionError(StockLedgerError):
    """Requested move is not legal from the current status."""

    def __init__(
        self,
        entity: str,
        entity_id: int | None,
        current_status: str,
        action: str,
    ):
        super().__init__(
            f"{entity} {entity_id}: '{action}' not allowed from '{current_status}'",
            code="INVALID_TRANSITION",
            details={
                "entity": entity,
                "entity_id": entity_id,
                "current_status": current_status,
                "action": action,
            },
        )


class UnknownStatusError(InvalidTransitionError):
    """Status string is not part of the entity's enumeration."""

    def __init__(self, entity: str, status: str):
        super().__init__(entity, None, status, "parse_status")
        self.details["unknown_status"] = status


# Quantity invariants
class InvalidQuantityError(StockLedgerError):
    """Delta would break 0 <= reserved <= on_hand."""

    def __init__(
        self,
        product_id: int,
        warehouse_id: int,
        on_hand: int,
        reserved: int,
        on_hand_delta: int,
        reserved_delta: int,
        reason: str = "invariant_violation",
    ):
        super().__init__(
            f"Invalid quantity change for product {product_id} at warehouse {warehouse_id}",
            code="INVALID_QUANTITY",
            details={
                "product_id": product_id,
                "warehouse_id": warehouse_id,
                "on_hand": on_hand,
                "reserved": reserved,
                "on_hand_delta": on_hand_delta,
                "reserved_delta": reserved_delta,
                "reason": reason,
            },
        )


class InsufficientStockError(StockLedgerError):
    """Available quantity too low for a reservation or transfer."""

    def __init__(
        self,
        product_id: int,
        warehouse_id: int,
        requested: int,
        available: int,
    ):
        super().__init__(
            f"Insufficient stock for product {product_id} at warehouse {warehouse_id}",
            code="INSUFFICIENT_STOCK",
            details={
                "product_id": product_id,
                "warehouse_id": warehouse_id,
                "requested": requested,
                "available": available,
            },
        )


class OverReceiptError(StockLedgerError):
    """Cumulative received quantity would exceed the ordered quantity."""

    def __init__(self, item_id: int, ordered: int, received: int, requested: int):
        super().__init__(
            f"Purchase order item {item_id} over-receipt",
            code="OVER_RECEIPT",
            details={
                "item_id": item_id,
                "ordered": ordered,
                "received": received,
                "requested": requested,
                "remaining": ordered - received,
            },
        )


class OverFulfillmentError(StockLedgerError):
    """Cumulative fulfilled quantity would exceed the ordered quantity."""

    def __init__(self, item_id: int, ordered: int, fulfilled: int, requested: int):
        super().__init__(
            f"Sales order item {item_id} over-fulfillment",
            code="OVER_FULFILLMENT",
            details={
                "item_id": item_id,
                "ordered": ordered,
                "fulfilled": fulfilled,
                "requested": requested,
                "remaining": ordered - fulfilled,
            },
        )


# Transfers
class SameWarehouseError(StockLedgerError):
    """Transfer source and destination are the same warehouse."""

    def __init__(self, warehouse_id: int):
        super().__init__(
            f"Transfer source and destination are both warehouse {warehouse_id}",
            code="SAME_WAREHOUSE",
            details={"warehouse_id": warehouse_id},
        )


class DuplicateTransferError(StockLedgerError):
    """An identical open transfer already exists."""

    def __init__(self, existing_id: int):
        super().__init__(
            f"Open transfer {existing_id} already covers this request",
            code="DUPLICATE_TRANSFER",
            details={"existing_id": existing_id},
        )


# Lookup
class NotFoundError(StockLedgerError):
    """Entity not found in storage."""

    def __init__(self, entity: str, identifier: Any):
        super().__init__(
            f"{entity} not found: {identifier}",
            code="NOT_FOUND",
            details={"entity": entity, "identifier": identifier},
        )


class InventoryNotFoundError(NotFoundError):
    def __init__(self, identifier: Any):
        super().__init__("inventory", identifier)


class PurchaseOrderNotFoundError(NotFoundError):
    def __init__(self, po_id: int):
        super().__init__("purchase_order", po_id)


class PurchaseOrderItemNotFoundError(NotFoundError):
    def __init__(self, item_id: int):
        super().__init__("purchase_order_item", item_id)


class SalesOrderNotFoundError(NotFoundError):
    def __init__(self, so_id: int):
        super().__init__("sales_order", so_id)


class SalesOrderItemNotFoundError(NotFoundError):
    def __init__(self, item_id: int):
        super().__init__("sales_order_item", item_id)


class StockTransferNotFoundError(NotFoundError):
    def __init__(self, transfer_id: int):
        super().__init__("stock_transfer", transfer_id)


class StockAdjustmentNotFoundError(NotFoundError):
    def __init__(self, adjustment_id: int):
        super().__init__("stock_adjustment", adjustment_id)


class StockMovementNotFoundError(NotFoundError):
    def __init__(self, movement_id: int):
        super().__init__("stock_movement", movement_id)


# Validation
class ValidationError(StockLedgerError):
    """Business-level input check failed."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            f"Validation error for '{field}': {message}",
            code="VALIDATION_ERROR",
            details={
                "field": field,
                "message": message,
                "value": str(value)[:100] if value is not None else None,
            },
        )


# Infrastructure
class UnavailableError(StockLedgerError):
    """Storage unavailable, lock timeout or lost version race. Retry the whole call."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Storage unavailable during {operation}: {error}",
            code="UNAVAILABLE",
            details={"operation": operation, "error": error},
        )
