"""Mocked unit of work for service tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest


def _echo(entity):
    return entity


@pytest.fixture
def uow() -> MagicMock:
    """A unit of work whose stores are AsyncMocks that echo what they save."""
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)

    for name in (
        "inventory",
        "purchase_orders",
        "sales_orders",
        "transfers",
        "adjustments",
        "movements",
        "requests",
    ):
        setattr(uow, name, AsyncMock())

    for store in (uow.purchase_orders, uow.sales_orders, uow.transfers, uow.movements):
        store.next_sequence.return_value = 1
        store.create.side_effect = _echo
        store.update.side_effect = _echo
    uow.adjustments.create.side_effect = _echo
    uow.purchase_orders.update_item.side_effect = _echo
    uow.sales_orders.update_item.side_effect = _echo

    uow.requests.get.return_value = None
    uow.inventory.get.return_value = None
    uow.transfers.find_open_duplicate.return_value = None
    return uow


@pytest.fixture
def uow_factory(uow: MagicMock) -> MagicMock:
    return MagicMock(return_value=uow)
