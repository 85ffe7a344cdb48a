"""Fixtures for API tests: the app wired to an in-memory store."""

import pytest
from httpx import ASGITransport, AsyncClient

from src.api import dependencies as deps
from src.api.main import app
from src.application.use_cases import (
    AssetExpenseReportUseCase,
    DeleteJobCardUseCase,
    ExportLedgerUseCase,
    ImportLedgerUseCase,
    PreviewJobCardCostUseCase,
    ProcessPurchaseInvoiceUseCase,
    ReceiveStockUseCase,
    SaveJobCardDraftUseCase,
    SettleJobCardUseCase,
    WriteOffStockUseCase,
)
from src.core.entities.inventory import CostingMethod
from src.infrastructure.storage.memory import InMemoryWorkshopStore, SettingsCostingPolicySource


@pytest.fixture
def memory_store() -> InMemoryWorkshopStore:
    return InMemoryWorkshopStore()


@pytest.fixture
def policy() -> SettingsCostingPolicySource:
    return SettingsCostingPolicySource(CostingMethod.FIFO)


@pytest.fixture
async def api_client(memory_store, policy):
    """Client whose stores and use cases all share one in-memory store."""
    overrides = {
        deps.get_store: lambda: memory_store,
        deps.get_policy_source: lambda: policy,
        deps.get_receive_stock_use_case: lambda: ReceiveStockUseCase(memory_store),
        deps.get_purchase_invoice_use_case: lambda: ProcessPurchaseInvoiceUseCase(memory_store),
        deps.get_write_off_use_case: lambda: WriteOffStockUseCase(memory_store, policy),
        deps.get_export_ledger_use_case: lambda: ExportLedgerUseCase(memory_store),
        deps.get_import_ledger_use_case: lambda: ImportLedgerUseCase(memory_store),
        deps.get_save_job_card_use_case: lambda: SaveJobCardDraftUseCase(memory_store),
        deps.get_preview_job_card_use_case: lambda: PreviewJobCardCostUseCase(
            memory_store, policy
        ),
        deps.get_settle_job_card_use_case: lambda: SettleJobCardUseCase(memory_store, policy),
        deps.get_delete_job_card_use_case: lambda: DeleteJobCardUseCase(memory_store),
        deps.get_asset_expense_use_case: lambda: AssetExpenseReportUseCase(memory_store),
    }
    app.dependency_overrides.update(overrides)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    for dependency in overrides:
        app.dependency_overrides.pop(dependency, None)


@pytest.fixture
async def seeded_store(memory_store, two_batch_item, draft_card):
    """In-memory store holding the two-batch item and the draft card."""
    await memory_store.save_stock_item(two_batch_item)
    await memory_store.save_job_card(draft_card)
    await memory_store.save_asset("AST-truck12", "Truck 12")
    return memory_store
