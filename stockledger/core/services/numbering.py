"""Human-readable reference numbers for documents and ledger entries."""

import secrets
from datetime import datetime

from stockledger.core.clock import utcnow
from stockledger.core.interfaces.unit_of_work import IUnitOfWork


async def purchase_order_number(uow: IUnitOfWork, now: datetime | None = None) -> str:
    """PO-YYYYMM-NNN, sequence restarting each month."""
    prefix = f"PO-{(now or utcnow()):%Y%m}-"
    sequence = await uow.purchase_orders.next_sequence(prefix)
    return f"{prefix}{sequence:03d}"


async def sales_order_number(uow: IUnitOfWork, now: datetime | None = None) -> str:
    """SO-YYYYMM-NNN, sequence restarting each month."""
    prefix = f"SO-{(now or utcnow()):%Y%m}-"
    sequence = await uow.sales_orders.next_sequence(prefix)
    return f"{prefix}{sequence:03d}"


async def transfer_reference(uow: IUnitOfWork, now: datetime | None = None) -> str:
    """ST-YYYYMMDD-NNNN, sequence restarting each day."""
    prefix = f"ST-{(now or utcnow()):%Y%m%d}-"
    sequence = await uow.transfers.next_sequence(prefix)
    return f"{prefix}{sequence:04d}"


async def movement_reference(uow: IUnitOfWork, now: datetime | None = None) -> str:
    """SMYYYYMMDDNNNN, sequence restarting each day."""
    prefix = f"SM{(now or utcnow()):%Y%m%d}"
    sequence = await uow.movements.next_sequence(prefix)
    return f"{prefix}{sequence:04d}"


def adjustment_reference(now: datetime | None = None) -> str:
    """ADJ-YYYYMMDD-XXXXXX with a random hex suffix."""
    return f"ADJ-{(now or utcnow()):%Y%m%d}-{secrets.token_hex(3).upper()}"
