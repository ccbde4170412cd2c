"""Tests for StockTransferService."""

import pytest

from stockledger.core.entities.inventory import InventoryDelta, InventoryRecord
from stockledger.core.entities.stock_movement import MovementType
from stockledger.core.entities.stock_transfer import StockTransfer, StockTransferStatus
from stockledger.core.exceptions import (
    DuplicateTransferError,
    InsufficientStockError,
    InvalidTransitionError,
    SameWarehouseError,
    StockTransferNotFoundError,
    ValidationError,
)
from stockledger.core.services.stock_transfer_service import StockTransferService


@pytest.fixture
def service(uow_factory):
    return StockTransferService(uow_factory)


def make_transfer(status=StockTransferStatus.PENDING, transfer_id=30) -> StockTransfer:
    return StockTransfer(
        id=transfer_id,
        reference_number="ST-20240101-0001",
        from_warehouse_id=1,
        to_warehouse_id=2,
        product_id=7,
        quantity_transferred=15,
        status=status,
    )


def source_stock(on_hand: int = 20) -> InventoryRecord:
    return InventoryRecord(product_id=7, warehouse_id=1, quantity_on_hand=on_hand)


class TestInitiate:
    async def test_same_warehouse_rejected_first(self, service, uow_factory):
        """Test the warehouse check fires before anything else is validated."""
        with pytest.raises(SameWarehouseError):
            await service.initiate(1, 1, 7, 0)
        uow_factory.assert_not_called()

    async def test_non_positive_quantity(self, service):
        with pytest.raises(ValidationError):
            await service.initiate(1, 2, 7, 0)

    async def test_insufficient_source_stock(self, service, uow):
        uow.inventory.get.return_value = source_stock(10)
        with pytest.raises(InsufficientStockError):
            await service.initiate(1, 2, 7, 15)
        uow.transfers.create.assert_not_awaited()

    async def test_duplicate_open_transfer(self, service, uow):
        uow.inventory.get.return_value = source_stock()
        uow.transfers.find_open_duplicate.return_value = make_transfer(transfer_id=3)
        with pytest.raises(DuplicateTransferError) as exc_info:
            await service.initiate(1, 2, 7, 15)
        assert exc_info.value.details["existing_id"] == 3

    async def test_initiate_creates_pending(self, service, uow):
        uow.inventory.get.return_value = source_stock()
        transfer = await service.initiate(1, 2, 7, 15, initiated_by=9, notes="restock")
        assert transfer.status == StockTransferStatus.PENDING
        assert transfer.reference_number.startswith("ST-")
        assert transfer.reference_number.endswith("-0001")
        assert transfer.initiated_by == 9
        uow.inventory.apply_deltas.assert_not_awaited()


class TestLifecycle:
    async def test_approve_rechecks_availability(self, service, uow):
        uow.transfers.get.return_value = make_transfer()
        uow.inventory.get.return_value = source_stock(5)
        with pytest.raises(InsufficientStockError):
            await service.approve(30)

    async def test_mark_in_transit_has_no_inventory_effect(self, service, uow):
        uow.transfers.get.return_value = make_transfer(status=StockTransferStatus.APPROVED)
        transfer = await service.mark_in_transit(30)
        assert transfer.status == StockTransferStatus.IN_TRANSIT
        assert transfer.shipped_at is not None
        uow.inventory.apply_deltas.assert_not_awaited()
        uow.inventory.apply_delta.assert_not_awaited()

    async def test_complete_moves_stock_in_one_unit(self, service, uow, uow_factory):
        uow.transfers.get.return_value = make_transfer(status=StockTransferStatus.IN_TRANSIT)
        uow.inventory.get.return_value = source_stock()
        uow.inventory.apply_deltas.return_value = [
            InventoryRecord(product_id=7, warehouse_id=1, quantity_on_hand=5),
            InventoryRecord(product_id=7, warehouse_id=2, quantity_on_hand=20),
        ]

        transfer = await service.complete(30, completed_by=4)

        assert transfer.status == StockTransferStatus.COMPLETED
        assert transfer.completed_by == 4
        uow_factory.assert_called_once_with()
        uow.inventory.apply_deltas.assert_awaited_once_with(
            [
                InventoryDelta(product_id=7, warehouse_id=1, on_hand_delta=-15),
                InventoryDelta(product_id=7, warehouse_id=2, on_hand_delta=15),
            ]
        )
        movements = [c[0][0] for c in uow.movements.create.call_args_list]
        assert [(m.movement_type, m.quantity_moved) for m in movements] == [
            (MovementType.TRANSFER_OUT, -15),
            (MovementType.TRANSFER_IN, 15),
        ]

    async def test_complete_twice_rejected(self, service, uow):
        uow.transfers.get.return_value = make_transfer(status=StockTransferStatus.COMPLETED)
        with pytest.raises(InvalidTransitionError):
            await service.complete(30)
        uow.inventory.apply_deltas.assert_not_awaited()

    async def test_cancel_in_transit_rejected(self, service, uow):
        uow.transfers.get.return_value = make_transfer(status=StockTransferStatus.IN_TRANSIT)
        with pytest.raises(InvalidTransitionError):
            await service.cancel(30, "wrong product")

    async def test_update_only_while_pending(self, service, uow):
        uow.transfers.get.return_value = make_transfer(status=StockTransferStatus.APPROVED)
        with pytest.raises(InvalidTransitionError):
            await service.update(30, notes="x")

    async def test_update_quantity_rechecks_duplicates(self, service, uow):
        """Test a quantity edit cannot produce a second identical open transfer."""
        uow.transfers.get.return_value = make_transfer()
        uow.inventory.get.return_value = source_stock(20)
        uow.transfers.find_open_duplicate.return_value = make_transfer(transfer_id=31)

        with pytest.raises(DuplicateTransferError) as exc_info:
            await service.update(30, quantity_transferred=10)

        assert exc_info.value.details["existing_id"] == 31
        uow.transfers.find_open_duplicate.assert_awaited_once_with(1, 2, 7, 10, exclude_id=30)
        uow.transfers.update.assert_not_awaited()

    async def test_update_quantity_without_duplicate(self, service, uow):
        uow.transfers.get.return_value = make_transfer()
        uow.inventory.get.return_value = source_stock(20)

        transfer = await service.update(30, quantity_transferred=10, notes="half pallet")

        assert transfer.quantity_transferred == 10
        assert transfer.notes == "half pallet"

    async def test_notes_only_update_skips_guards(self, service, uow):
        uow.transfers.get.return_value = make_transfer()

        await service.update(30, notes="fragile")

        uow.transfers.find_open_duplicate.assert_not_awaited()
        uow.inventory.get.assert_not_awaited()

    async def test_list_transfers_unknown_status(self, service):
        with pytest.raises(InvalidTransitionError):
            await service.list_transfers(status="lost")


class TestBulk:
    async def test_bulk_approve_collects_failures(self, service, uow):
        """Test each transfer succeeds or fails on its own."""
        transfers = {30: make_transfer(), 31: make_transfer(StockTransferStatus.COMPLETED, 31)}
        uow.transfers.get.side_effect = lambda transfer_id: transfers.get(transfer_id)
        uow.inventory.get.return_value = source_stock()

        result = await service.bulk_approve([30, 31, 32], approver_id=1)

        assert result.succeeded == [30]
        assert result.failed == [31, 32]
        assert result.errors[31]["error"] == "INVALID_TRANSITION"
        assert result.errors[32]["error"] == "NOT_FOUND"

    async def test_bulk_cancel(self, service, uow):
        uow.transfers.get.side_effect = lambda transfer_id: make_transfer(transfer_id=transfer_id)
        result = await service.bulk_cancel([1, 2], "season over")
        assert result.success_count == 2
        assert result.failure_count == 0

    async def test_get_missing(self, service, uow):
        uow.transfers.get.return_value = None
        with pytest.raises(StockTransferNotFoundError):
            await service.get(99)
