"""Unit tests for ledger export and import use cases."""

import pytest

from src.application.dto.requests import ImportLedgerRequest, SettleJobCardRequest
from src.application.use_cases.settle_job_card import SettleJobCardUseCase
from src.application.use_cases.transfer_ledger import ExportLedgerUseCase, ImportLedgerUseCase
from src.core.exceptions import LedgerIntegrityError, StockItemNotFoundError
from src.infrastructure.storage.memory import InMemoryWorkshopStore


class TestExportLedger:
    async def test_exports_snapshot(self, stocked_store, two_batch_item):
        uc = ExportLedgerUseCase(workshop_store=stocked_store)

        ledger = await uc.execute(two_batch_item.id)

        assert ledger["id"] == two_batch_item.id
        assert ledger["total_quantity"] == 10
        assert len(ledger["batches"]) == 2
        assert uc.to_response(ledger).stock_id == two_batch_item.id

    async def test_unknown_item(self, store):
        uc = ExportLedgerUseCase(workshop_store=store)
        with pytest.raises(StockItemNotFoundError):
            await uc.execute("STK-none")


class TestImportLedger:
    async def test_import_into_new_store(
        self, stocked_store, fifo_policy, draft_card, two_batch_item
    ):
        settle = SettleJobCardUseCase(workshop_store=stocked_store, policy_source=fifo_policy)
        await settle.execute(SettleJobCardRequest(job_card_id=draft_card.id))
        ledger = await ExportLedgerUseCase(workshop_store=stocked_store).execute(two_batch_item.id)

        target = InMemoryWorkshopStore()
        imported = await ImportLedgerUseCase(workshop_store=target).execute(
            ImportLedgerRequest(ledger=ledger)
        )

        assert imported.version == 1
        assert imported.total_quantity == 3
        assert imported.average_cost == ledger["average_cost"]
        assert [b.batch_id for b in imported.batches] == [b["batch_id"] for b in ledger["batches"]]
        assert len(imported.usage_history) == 1
        assert imported.usage_history[0].id is not None

    async def test_import_replaces_batches_and_keeps_history(
        self, stocked_store, fifo_policy, draft_card, two_batch_item
    ):
        snapshot = await ExportLedgerUseCase(workshop_store=stocked_store).execute(
            two_batch_item.id
        )
        settle = SettleJobCardUseCase(workshop_store=stocked_store, policy_source=fifo_policy)
        await settle.execute(SettleJobCardRequest(job_card_id=draft_card.id))

        imported = await ImportLedgerUseCase(workshop_store=stocked_store).execute(
            ImportLedgerRequest(ledger=snapshot)
        )

        assert imported.total_quantity == 10
        assert imported.version == 3
        assert len(imported.usage_history) == 1

    async def test_inconsistent_snapshot_rejected(self, stocked_store, two_batch_item):
        ledger = await ExportLedgerUseCase(workshop_store=stocked_store).execute(two_batch_item.id)
        ledger["average_cost"] = 99.0

        with pytest.raises(LedgerIntegrityError):
            await ImportLedgerUseCase(workshop_store=stocked_store).execute(
                ImportLedgerRequest(ledger=ledger)
            )

        stored = await stocked_store.get_stock_item(two_batch_item.id)
        assert stored.version == 1

    async def test_to_response_includes_history(self, store, two_batch_item):
        uc = ImportLedgerUseCase(workshop_store=store)
        item = await uc.execute(ImportLedgerRequest(ledger=two_batch_item.model_dump(mode="json")))

        response = uc.to_response(item)

        assert response.id == two_batch_item.id
        assert response.total_value == 150.0
