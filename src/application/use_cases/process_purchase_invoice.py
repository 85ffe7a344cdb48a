"""Process Purchase Invoice Use Case: receive every line of a supplier invoice."""

from collections import defaultdict
from dataclasses import dataclass, field

from src.application.dto.requests import PurchaseInvoiceRequest
from src.application.dto.responses import PurchaseInvoiceResponse, StockItemResponse
from src.application.use_cases.support import parse_iso_date, run_with_commit_retry
from src.config import get_logger, get_settings
from src.core.entities.identifiers import StockId, SupplierId
from src.core.entities.inventory import StockItem
from src.core.entities.purchase import ExistingStockLine, NewStockLine, PurchaseInvoice
from src.core.exceptions import InvalidQuantityError, StockItemNotFoundError, ValidationError
from src.core.interfaces.workshop_store import IWorkshopStore
from src.core.services.batch_ledger import add_batch
from src.core.services.costing_engine import round_currency

logger = get_logger(__name__)


@dataclass
class PurchaseInvoiceResult:
    """Result of processing a purchase invoice."""

    invoice: PurchaseInvoice
    stock_items: list[StockItem] = field(default_factory=list)
    created_count: int = 0
    attempts: int = 1


def validate_invoice(invoice: PurchaseInvoice) -> None:
    """
    Check a purchase invoice before anything is received.

    Raises:
        ValidationError: Missing supplier, no lines, bad unit cost or a
            new item without a name.
        InvalidQuantityError: A line quantity is zero or negative.
    """
    if not invoice.supplier_id:
        raise ValidationError("supplier_id", "Select a supplier")
    if not invoice.items:
        raise ValidationError("items", "Add at least one item")

    for index, line in enumerate(invoice.items):
        if line.quantity <= 0:
            raise InvalidQuantityError(line.quantity, field=f"items[{index}].quantity")
        if line.unit_cost <= 0:
            raise ValidationError(
                f"items[{index}].unit_cost", "Unit cost must be greater than 0", line.unit_cost
            )
        if isinstance(line, NewStockLine) and not line.name.strip():
            raise ValidationError(f"items[{index}].name", "Enter a name for the new item")


class ProcessPurchaseInvoiceUseCase:
    """
    Receive a supplier invoice into stock, one batch per line.

    The whole invoice commits in one transaction: restocked and new items
    are saved together or not at all. A concurrent change to any restocked
    item restarts the invoice from a fresh load.
    """

    def __init__(
        self,
        workshop_store: IWorkshopStore | None = None,
    ):
        self._workshop_store = workshop_store

    async def _get_store(self) -> IWorkshopStore:
        if self._workshop_store is None:
            from src.infrastructure.storage.sqlite import get_workshop_store

            self._workshop_store = await get_workshop_store()
        return self._workshop_store

    async def execute(self, request: PurchaseInvoiceRequest) -> PurchaseInvoiceResult:
        """Execute purchase invoice use case."""
        invoice = PurchaseInvoice(
            supplier_id=SupplierId(request.supplier_id) if request.supplier_id else None,
            invoice_number=request.invoice_number,
            invoice_date=parse_iso_date(request.invoice_date, "invoice_date"),
            notes=request.notes,
            items=request.items,
        )

        logger.info(
            "purchase_invoice_started",
            invoice_number=invoice.invoice_number,
            supplier_id=invoice.supplier_id,
            lines=len(invoice.items),
        )

        validate_invoice(invoice)

        store = await self._get_store()

        async def attempt() -> PurchaseInvoiceResult:
            return await self._receive_once(store, invoice)

        result, attempts = await run_with_commit_retry(attempt)
        result.attempts = attempts

        logger.info(
            "purchase_invoice_complete",
            invoice_number=invoice.invoice_number,
            invoice_total=round(invoice.invoice_total, 4),
            items_updated=len(result.stock_items) - result.created_count,
            items_created=result.created_count,
            attempts=attempts,
        )
        return result

    async def _receive_once(
        self,
        store: IWorkshopStore,
        invoice: PurchaseInvoice,
    ) -> PurchaseInvoiceResult:
        merge_tolerance = get_settings().costing.merge_tolerance
        invoice_number = invoice.invoice_number or None

        restock: dict[StockId, list[ExistingStockLine]] = defaultdict(list)
        for line in invoice.items:
            if isinstance(line, ExistingStockLine):
                restock[line.stock_id].append(line)

        # Every restocked item must exist before anything is received
        restocked: list[StockItem] = []
        for stock_id in restock:
            item = await store.get_stock_item(stock_id)
            if item is None:
                raise StockItemNotFoundError(stock_id)
            restocked.append(item)

        for item in restocked:
            for line in restock[item.id]:
                add_batch(
                    item,
                    invoice.invoice_date,
                    line.quantity,
                    line.unit_cost,
                    invoice_number=invoice_number,
                    merge_tolerance=merge_tolerance,
                )

        created: list[StockItem] = []
        for line in invoice.items:
            if not isinstance(line, NewStockLine):
                continue
            item = StockItem(
                name=line.name.strip(),
                category=line.category,
                supplier_id=invoice.supplier_id,
                part_number=line.part_number,
                description=line.description,
            )
            add_batch(
                item,
                invoice.invoice_date,
                line.quantity,
                line.unit_cost,
                invoice_number=invoice_number,
                merge_tolerance=merge_tolerance,
            )
            created.append(item)

        saved_items = await store.commit_stock_items([*restocked, *created])
        return PurchaseInvoiceResult(
            invoice=invoice,
            stock_items=saved_items,
            created_count=len(created),
        )

    def to_response(self, result: PurchaseInvoiceResult) -> PurchaseInvoiceResponse:
        """Convert result to API response."""
        invoice = result.invoice
        return PurchaseInvoiceResponse(
            supplier_id=invoice.supplier_id,
            invoice_number=invoice.invoice_number,
            invoice_date=invoice.invoice_date,
            invoice_total=round_currency(invoice.invoice_total),
            stock_items=[StockItemResponse.from_entity(i) for i in result.stock_items],
            created_count=result.created_count,
        )
