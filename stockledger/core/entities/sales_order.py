"""Sales order domain entities."""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, Field, model_validator

from stockledger.core.clock import utcnow
from stockledger.core.entities.pricing import line_totals, order_totals
from stockledger.core.entities.state_machine import StateMachine


class SalesOrderStatus(str, Enum):
    """Sales order lifecycle states."""

    DRAFT = "draft"
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    CONFIRMED = "confirmed"
    PARTIALLY_FULFILLED = "partially_fulfilled"
    FULLY_FULFILLED = "fully_fulfilled"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class SalesOrderItemStatus(str, Enum):
    PENDING = "pending"
    PARTIALLY_FULFILLED = "partially_fulfilled"
    FULLY_FULFILLED = "fully_fulfilled"


_S = SalesOrderStatus

SALES_ORDER_TRANSITIONS = StateMachine(
    "sales_order",
    SalesOrderStatus,
    {
        _S.DRAFT: {_S.PENDING_APPROVAL, _S.CONFIRMED, _S.CANCELLED},
        _S.PENDING_APPROVAL: {_S.APPROVED, _S.CANCELLED},
        _S.APPROVED: {_S.CONFIRMED, _S.CANCELLED},
        _S.CONFIRMED: {
            _S.PARTIALLY_FULFILLED,
            _S.FULLY_FULFILLED,
            _S.CANCELLED,
        },
        _S.PARTIALLY_FULFILLED: {
            _S.PARTIALLY_FULFILLED,
            _S.FULLY_FULFILLED,
            _S.CANCELLED,
        },
        _S.FULLY_FULFILLED: {_S.SHIPPED, _S.CANCELLED},
        _S.SHIPPED: {_S.DELIVERED},
    },
)

SALES_ORDER_EDITABLE = frozenset({_S.DRAFT, _S.PENDING_APPROVAL})
SALES_ORDER_FULFILLABLE = frozenset({_S.CONFIRMED, _S.PARTIALLY_FULFILLED})
# Statuses in which the order holds a reservation on inventory
SALES_ORDER_RESERVED = SALES_ORDER_FULFILLABLE


class SalesOrderLineInput(BaseModel):
    """Validated input for a new sales order line."""

    product_id: int
    quantity_ordered: int = Field(gt=0)
    unit_price: float = Field(default=0.0, ge=0)
    discount_percentage: float = Field(default=0.0, ge=0, le=100)
    notes: str | None = None


class FulfillmentLine(BaseModel):
    """One line of a fulfillItems call."""

    item_id: int
    quantity_fulfilled: int
    notes: str | None = None


class SalesOrderItem(BaseModel):
    """Ordered/fulfilled counters for one product on a sales order."""

    id: int | None = None
    sales_order_id: int | None = None
    product_id: int
    quantity_ordered: int = Field(gt=0)
    quantity_fulfilled: int = Field(default=0, ge=0)
    unit_price: float = Field(default=0.0, ge=0)
    discount_percentage: float = Field(default=0.0, ge=0, le=100)
    status: SalesOrderItemStatus = SalesOrderItemStatus.PENDING
    notes: str | None = None
    last_fulfilled_at: datetime | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode="after")
    def check_fulfilled(self) -> "SalesOrderItem":
        if self.quantity_fulfilled > self.quantity_ordered:
            raise ValueError("quantity_fulfilled cannot exceed quantity_ordered")
        return self

    @property
    def line_total(self) -> float:
        return line_totals(self.quantity_ordered, self.unit_price, self.discount_percentage)[0]

    @property
    def discount_amount(self) -> float:
        return line_totals(self.quantity_ordered, self.unit_price, self.discount_percentage)[1]

    @property
    def final_line_total(self) -> float:
        return line_totals(self.quantity_ordered, self.unit_price, self.discount_percentage)[2]

    @property
    def quantity_remaining(self) -> int:
        """Units still reserved for this line once the order is confirmed."""
        return self.quantity_ordered - self.quantity_fulfilled

    @property
    def is_fully_fulfilled(self) -> bool:
        return self.quantity_fulfilled >= self.quantity_ordered

    def refresh_status(self) -> SalesOrderItemStatus:
        if self.quantity_fulfilled == 0:
            self.status = SalesOrderItemStatus.PENDING
        elif self.is_fully_fulfilled:
            self.status = SalesOrderItemStatus.FULLY_FULFILLED
        else:
            self.status = SalesOrderItemStatus.PARTIALLY_FULFILLED
        return self.status


class SalesOrder(BaseModel):
    """Outbound order shipped from one warehouse."""

    id: int | None = None
    so_number: str
    warehouse_id: int
    customer_name: str | None = None
    status: SalesOrderStatus = SalesOrderStatus.DRAFT
    order_date: date = Field(default_factory=lambda: utcnow().date())

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
    confirmed_at: datetime | None = None
    fulfilled_by: int | None = None
    fulfilled_at: datetime | None = None
    shipped_by: int | None = None
    shipped_at: datetime | None = None
    tracking_number: str | None = None
    carrier: str | None = None
    delivered_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None

    items: list[SalesOrderItem] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def recompute_totals(self) -> "SalesOrder":
        """Recompute subtotal, tax and total from the current item lines."""
        self.subtotal, self.tax_amount, self.total_amount = order_totals(
            (item.final_line_total for item in self.items),
            self.tax_rate,
            self.shipping_cost,
            self.discount_amount,
        )
        return self

    def get_item(self, item_id: int) -> SalesOrderItem | None:
        return next((item for item in self.items if item.id == item_id), None)

    @property
    def total_fulfilled(self) -> int:
        return sum(item.quantity_fulfilled for item in self.items)

    @property
    def all_fulfilled(self) -> bool:
        return bool(self.items) and all(item.is_fully_fulfilled for item in self.items)
