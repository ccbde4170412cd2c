"""Line and order total arithmetic shared by purchase and sales orders."""

from collections.abc import Iterable


def line_totals(quantity: int, unit_amount: float, discount_percentage: float) -> tuple[float, float, float]:
    """Return (line_total, discount_amount, final_line_total) for one item line."""
    line_total = quantity * unit_amount
    discount_amount = line_total * discount_percentage / 100
    return line_total, discount_amount, line_total - discount_amount


def order_totals(
    final_line_totals: Iterable[float],
    tax_rate: float,
    shipping_cost: float,
    discount_amount: float,
) -> tuple[float, float, float]:
    """Return (subtotal, tax_amount, total_amount) for an order."""
    subtotal = sum(final_line_totals, 0.0)
    tax_amount = subtotal * tax_rate
    total_amount = subtotal + tax_amount + shipping_cost - discount_amount
    return subtotal, tax_amount, total_amount


def append_note(existing: str | None, note: str | None) -> str | None:
    """Append a note on its own line, keeping earlier notes."""
    if not note:
        return existing
    if not existing:
        return note
    return f"{existing}\n{note}"
