"""Purchase order domain entities."""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, Field, model_validator

from stockledger.core.clock import utcnow
from stockledger.core.entities.pricing import line_totals, order_totals
from stockledger.core.entities.state_machine import StateMachine


class PurchaseOrderStatus(str, Enum):
    """Purchase order lifecycle states."""

    DRAFT = "draft"
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    SENT_TO_SUPPLIER = "sent_to_supplier"
    PARTIALLY_RECEIVED = "partially_received"
    FULLY_RECEIVED = "fully_received"
    CLOSED = "closed"
    CANCELLED = "cancelled"


class PurchaseOrderItemStatus(str, Enum):
    PENDING = "pending"
    PARTIALLY_RECEIVED = "partially_received"
    FULLY_RECEIVED = "fully_received"


_S = PurchaseOrderStatus

PURCHASE_ORDER_TRANSITIONS = StateMachine(
    "purchase_order",
    PurchaseOrderStatus,
    {
        _S.DRAFT: {_S.PENDING_APPROVAL, _S.CANCELLED},
        _S.PENDING_APPROVAL: {_S.APPROVED, _S.CANCELLED},
        _S.APPROVED: {_S.SENT_TO_SUPPLIER, _S.CANCELLED},
        _S.SENT_TO_SUPPLIER: {
            _S.PARTIALLY_RECEIVED,
            _S.FULLY_RECEIVED,
            _S.CANCELLED,
        },
        # a further partial receipt keeps the order in partially_received
        _S.PARTIALLY_RECEIVED: {
            _S.PARTIALLY_RECEIVED,
            _S.FULLY_RECEIVED,
            _S.CLOSED,
        },
        _S.FULLY_RECEIVED: {_S.CLOSED},
    },
)

# Item lines may only change before the order is approved
PURCHASE_ORDER_EDITABLE = frozenset({_S.DRAFT, _S.PENDING_APPROVAL})
PURCHASE_ORDER_RECEIVABLE = frozenset({_S.SENT_TO_SUPPLIER, _S.PARTIALLY_RECEIVED})


class PurchaseOrderLineInput(BaseModel):
    """Validated input for a new purchase order line."""

    product_id: int
    quantity_ordered: int = Field(gt=0)
    unit_cost: float = Field(default=0.0, ge=0)
    discount_percentage: float = Field(default=0.0, ge=0, le=100)
    notes: str | None = None


class ReceiptLine(BaseModel):
    """One line of a receiveItems call."""

    item_id: int
    quantity_received: int
    notes: str | None = None


class PurchaseOrderItem(BaseModel):
    """Ordered/received counters for one product on a purchase order."""

    id: int | None = None
    purchase_order_id: int | None = None
    product_id: int
    quantity_ordered: int = Field(gt=0)
    quantity_received: int = Field(default=0, ge=0)
    unit_cost: float = Field(default=0.0, ge=0)
    discount_percentage: float = Field(default=0.0, ge=0, le=100)
    status: PurchaseOrderItemStatus = PurchaseOrderItemStatus.PENDING
    notes: str | None = None
    last_received_at: datetime | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode="after")
    def check_received(self) -> "PurchaseOrderItem":
        if self.quantity_received > self.quantity_ordered:
            raise ValueError("quantity_received cannot exceed quantity_ordered")
        return self

    @property
    def line_total(self) -> float:
        return line_totals(self.quantity_ordered, self.unit_cost, self.discount_percentage)[0]

    @property
    def discount_amount(self) -> float:
        return line_totals(self.quantity_ordered, self.unit_cost, self.discount_percentage)[1]

    @property
    def final_line_total(self) -> float:
        return line_totals(self.quantity_ordered, self.unit_cost, self.discount_percentage)[2]

    @property
    def quantity_remaining(self) -> int:
        return self.quantity_ordered - self.quantity_received

    @property
    def is_fully_received(self) -> bool:
        return self.quantity_received >= self.quantity_ordered

    def refresh_status(self) -> PurchaseOrderItemStatus:
        """Recompute item status from the received counter."""
        if self.quantity_received == 0:
            self.status = PurchaseOrderItemStatus.PENDING
        elif self.is_fully_received:
            self.status = PurchaseOrderItemStatus.FULLY_RECEIVED
        else:
            self.status = PurchaseOrderItemStatus.PARTIALLY_RECEIVED
        return self.status


class PurchaseOrder(BaseModel):
    """Inbound order against one warehouse."""

    id: int | None = None
    po_number: str
    warehouse_id: int
    supplier_name: str | None = None
    status: PurchaseOrderStatus = PurchaseOrderStatus.DRAFT
    order_date: date = Field(default_factory=lambda: utcnow().date())
    expected_delivery_date: date | None = None

    subtotal: float = 0.0
    tax_rate: float = Field(default=0.0, ge=0)
    tax_amount: float = 0.0
    shipping_cost: float = Field(default=0.0, ge=0)
    discount_amount: float = Field(default=0.0, ge=0)
    total_amount: float = 0.0

    notes: str | None = None
    created_by: int | None = None
    approved_by: int | None = None
    approved_at: datetime | None = None
    sent_at: datetime | None = None
    received_by: int | None = None
    received_at: datetime | None = None
    closed_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None

    items: list[PurchaseOrderItem] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def recompute_totals(self) -> "PurchaseOrder":
        """Recompute subtotal, tax and total from the current item lines."""
        self.subtotal, self.tax_amount, self.total_amount = order_totals(
            (item.final_line_total for item in self.items),
            self.tax_rate,
            self.shipping_cost,
            self.discount_amount,
        )
        return self

    def get_item(self, item_id: int) -> PurchaseOrderItem | None:
        return next((item for item in self.items if item.id == item_id), None)

    @property
    def total_received(self) -> int:
        return sum(item.quantity_received for item in self.items)

    @property
    def all_received(self) -> bool:
        return bool(self.items) and all(item.is_fully_received for item in self.items)
