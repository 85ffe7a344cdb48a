"""SQLite implementation of workshop storage."""

from collections import defaultdict
from collections.abc import Sequence
from datetime import UTC, date, datetime

import aiosqlite

from src.config import get_logger
from src.core.entities.identifiers import AssetId, JobCardId, StockId
from src.core.entities.inventory import (
    Batch,
    CostingMethod,
    StockItem,
    UsageRecord,
    WriteoffRecord,
)
from src.core.entities.job_card import JobCard, JobCardLineItem, JobCardStatus
from src.core.exceptions import StaleReferenceError
from src.core.interfaces.workshop_store import IWorkshopStore
from src.infrastructure.storage.sqlite.connection import get_connection, get_transaction

logger = get_logger(__name__)


class SQLiteWorkshopStore(IWorkshopStore):
    """SQLite implementation of stock item and job card storage."""

    # --- Stock items ---

    async def load_stock_items(self) -> list[StockItem]:
        """Load all stock items with batches and history."""
        async with get_connection() as conn:
            cursor = await conn.execute("SELECT * FROM stock_items ORDER BY name, id")
            item_rows = await cursor.fetchall()

            batches = await self._fetch_grouped(
                conn,
                "SELECT * FROM stock_batches ORDER BY stock_id, position",
                self._row_to_batch,
            )
            usage = await self._fetch_grouped(
                conn,
                "SELECT * FROM stock_usage ORDER BY stock_id, id",
                self._row_to_usage,
            )
            writeoffs = await self._fetch_grouped(
                conn,
                "SELECT * FROM stock_writeoffs ORDER BY stock_id, id",
                self._row_to_writeoff,
            )

        return [
            self._row_to_stock_item(
                row,
                batches.get(row["id"], []),
                usage.get(row["id"], []),
                writeoffs.get(row["id"], []),
            )
            for row in item_rows
        ]

    async def get_stock_item(self, stock_id: StockId) -> StockItem | None:
        """Get stock item by ID."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM stock_items WHERE id = ?", (stock_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None

            cursor = await conn.execute(
                "SELECT * FROM stock_batches WHERE stock_id = ? ORDER BY position",
                (stock_id,),
            )
            batches = [self._row_to_batch(r) for r in await cursor.fetchall()]

            cursor = await conn.execute(
                "SELECT * FROM stock_usage WHERE stock_id = ? ORDER BY id", (stock_id,)
            )
            usage = [self._row_to_usage(r) for r in await cursor.fetchall()]

            cursor = await conn.execute(
                "SELECT * FROM stock_writeoffs WHERE stock_id = ? ORDER BY id", (stock_id,)
            )
            writeoffs = [self._row_to_writeoff(r) for r in await cursor.fetchall()]

        return self._row_to_stock_item(row, batches, usage, writeoffs)

    async def save_stock_item(self, item: StockItem) -> StockItem:
        """Insert or update a stock item (version checked)."""
        async with get_transaction("save_stock_item") as conn:
            return await self._write_stock_item(conn, item)

    # --- Job cards ---

    async def load_job_cards(self) -> list[JobCard]:
        """Load all job cards, newest first."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM job_cards ORDER BY job_date DESC, created_at DESC"
            )
            card_rows = await cursor.fetchall()
            lines = await self._fetch_grouped(
                conn,
                "SELECT * FROM job_card_items ORDER BY job_card_id, line_number",
                self._row_to_line_item,
                key="job_card_id",
            )
        return [self._row_to_job_card(row, lines.get(row["id"], [])) for row in card_rows]

    async def get_job_card(self, job_card_id: JobCardId) -> JobCard | None:
        """Get job card by ID."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM job_cards WHERE id = ?", (job_card_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            cursor = await conn.execute(
                "SELECT * FROM job_card_items WHERE job_card_id = ? ORDER BY line_number",
                (job_card_id,),
            )
            lines = [self._row_to_line_item(r) for r in await cursor.fetchall()]
        return self._row_to_job_card(row, lines)

    async def save_job_card(self, card: JobCard) -> JobCard:
        """Insert or update a job card with its line items (version checked)."""
        async with get_transaction("save_job_card") as conn:
            return await self._write_job_card(conn, card)

    async def delete_job_card(self, job_card_id: JobCardId) -> bool:
        """Delete a job card. Line items cascade."""
        async with get_transaction("delete_job_card") as conn:
            deleted = await self._delete_job_card(conn, job_card_id)
        return deleted

    # --- Commit points ---

    async def commit_stock_items(self, stock_items: Sequence[StockItem]) -> list[StockItem]:
        """Save several stock items in one transaction."""
        async with get_transaction("commit_stock_items") as conn:
            saved = [await self._write_stock_item(conn, item) for item in stock_items]
        logger.info("stock_items_committed", stock_items=len(saved))
        return saved

    async def commit_settlement(
        self, stock_items: Sequence[StockItem], card: JobCard
    ) -> tuple[list[StockItem], JobCard]:
        """Save settled stock items and the completed card in one transaction."""
        async with get_transaction("commit_settlement") as conn:
            committed = await self._write_job_card(conn, card)
            saved = [await self._write_stock_item(conn, item) for item in stock_items]
        logger.info(
            "settlement_committed",
            job_card_id=card.id,
            stock_items=len(saved),
        )
        return saved, committed

    async def commit_job_card_deletion(
        self, card: JobCard, stock_items: Sequence[StockItem]
    ) -> list[StockItem]:
        """Save restored stock items and delete the card in one transaction."""
        async with get_transaction("commit_job_card_deletion") as conn:
            await self._check_job_card_version(conn, card)
            saved = [await self._write_stock_item(conn, item) for item in stock_items]
            await self._delete_job_card(conn, card.id)
        logger.info(
            "job_card_deletion_committed",
            job_card_id=card.id,
            restored_items=len(saved),
        )
        return saved

    # --- Assets ---

    async def get_asset_name(self, asset_id: AssetId) -> str | None:
        async with get_connection() as conn:
            cursor = await conn.execute("SELECT name FROM assets WHERE id = ?", (asset_id,))
            row = await cursor.fetchone()
            return row["name"] if row else None

    async def save_asset(self, asset_id: AssetId, name: str) -> None:
        async with get_transaction("save_asset") as conn:
            await conn.execute(
                """
                INSERT INTO assets (id, name) VALUES (?, ?)
                ON CONFLICT(id) DO UPDATE SET name = excluded.name
                """,
                (asset_id, name),
            )

    # --- Writers (inside an open transaction) ---

    async def _write_stock_item(
        self, conn: aiosqlite.Connection, item: StockItem
    ) -> StockItem:
        cursor = await conn.execute(
            "SELECT version FROM stock_items WHERE id = ?", (item.id,)
        )
        row = await cursor.fetchone()
        stored_version = row["version"] if row else None

        saved = item.model_copy(deep=True)
        saved.updated_at = datetime.now(UTC)

        if item.version == 0:
            if stored_version is not None:
                raise StaleReferenceError("StockItem", item.id, item.version)
            await conn.execute(
                """
                INSERT INTO stock_items (
                    id, name, category, supplier_id, part_number, description,
                    total_quantity, average_cost, version, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, 1, ?, ?)
                """,
                (
                    saved.id,
                    saved.name,
                    saved.category,
                    saved.supplier_id,
                    saved.part_number,
                    saved.description,
                    saved.total_quantity,
                    saved.average_cost,
                    saved.created_at.isoformat(),
                    saved.updated_at.isoformat(),
                ),
            )
        else:
            if stored_version != item.version:
                raise StaleReferenceError("StockItem", item.id, item.version)
            await conn.execute(
                """
                UPDATE stock_items SET
                    name = ?,
                    category = ?,
                    supplier_id = ?,
                    part_number = ?,
                    description = ?,
                    total_quantity = ?,
                    average_cost = ?,
                    version = version + 1,
                    updated_at = ?
                WHERE id = ? AND version = ?
                """,
                (
                    saved.name,
                    saved.category,
                    saved.supplier_id,
                    saved.part_number,
                    saved.description,
                    saved.total_quantity,
                    saved.average_cost,
                    saved.updated_at.isoformat(),
                    saved.id,
                    item.version,
                ),
            )
        saved.version = item.version + 1

        # Batches are replaced wholesale; history tables are append-only
        await conn.execute("DELETE FROM stock_batches WHERE stock_id = ?", (saved.id,))
        await conn.executemany(
            """
            INSERT INTO stock_batches (
                batch_id, stock_id, purchase_date, quantity, unit_cost,
                invoice_number, position
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    batch.batch_id,
                    saved.id,
                    batch.purchase_date.isoformat(),
                    batch.quantity,
                    batch.unit_cost,
                    batch.invoice_number,
                    position,
                )
                for position, batch in enumerate(saved.batches)
            ],
        )

        for record in saved.usage_history:
            if record.id is not None:
                continue
            cursor = await conn.execute(
                """
                INSERT INTO stock_usage (
                    stock_id, usage_date, quantity, cost, job_card_id,
                    job_card_title, asset_id, asset_name, costing_method
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    saved.id,
                    record.usage_date.isoformat(),
                    record.quantity,
                    record.cost,
                    record.job_card_id,
                    record.job_card_title,
                    record.asset_id,
                    record.asset_name,
                    record.costing_method.value,
                ),
            )
            record.id = cursor.lastrowid

        for writeoff in saved.writeoffs:
            if writeoff.id is not None:
                continue
            cursor = await conn.execute(
                """
                INSERT INTO stock_writeoffs (
                    stock_id, writeoff_date, quantity, cost, reason, notes,
                    costing_method
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    saved.id,
                    writeoff.writeoff_date.isoformat(),
                    writeoff.quantity,
                    writeoff.cost,
                    writeoff.reason,
                    writeoff.notes,
                    writeoff.costing_method.value,
                ),
            )
            writeoff.id = cursor.lastrowid

        logger.info(
            "stock_item_saved",
            stock_id=saved.id,
            version=saved.version,
            total_quantity=saved.total_quantity,
        )
        return saved

    async def _check_job_card_version(
        self, conn: aiosqlite.Connection, card: JobCard
    ) -> None:
        """Fail unless the stored card is still the version that was loaded.

        A missing row counts as version 0, so a card deleted since it was
        loaded is stale too.
        """
        cursor = await conn.execute("SELECT version FROM job_cards WHERE id = ?", (card.id,))
        row = await cursor.fetchone()
        stored_version = row["version"] if row else 0
        if stored_version != card.version:
            raise StaleReferenceError("JobCard", card.id, card.version)

    async def _write_job_card(self, conn: aiosqlite.Connection, card: JobCard) -> JobCard:
        await self._check_job_card_version(conn, card)
        values = (
            card.title,
            card.asset_id,
            card.job_date.isoformat(),
            card.description,
            card.labor_cost,
            card.status.value,
            card.costing_method.value if card.costing_method else None,
            card.completed_at.isoformat() if card.completed_at else None,
        )
        if card.version == 0:
            await conn.execute(
                """
                INSERT INTO job_cards (
                    title, asset_id, job_date, description, labor_cost,
                    status, costing_method, completed_at, id, created_at, version
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 1)
                """,
                (*values, card.id, card.created_at.isoformat()),
            )
        else:
            await conn.execute(
                """
                UPDATE job_cards SET
                    title = ?,
                    asset_id = ?,
                    job_date = ?,
                    description = ?,
                    labor_cost = ?,
                    status = ?,
                    costing_method = ?,
                    completed_at = ?,
                    version = version + 1
                WHERE id = ? AND version = ?
                """,
                (*values, card.id, card.version),
            )
        await conn.execute("DELETE FROM job_card_items WHERE job_card_id = ?", (card.id,))
        await conn.executemany(
            """
            INSERT INTO job_card_items (
                job_card_id, line_number, stock_id, quantity, description, actual_cost
            ) VALUES (?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    card.id,
                    line_number,
                    line.stock_id,
                    line.quantity,
                    line.description,
                    line.actual_cost,
                )
                for line_number, line in enumerate(card.items, start=1)
            ],
        )
        saved = card.model_copy(deep=True)
        saved.version = card.version + 1
        logger.info(
            "job_card_saved",
            job_card_id=saved.id,
            status=saved.status.value,
            version=saved.version,
        )
        return saved

    async def _delete_job_card(
        self, conn: aiosqlite.Connection, job_card_id: JobCardId
    ) -> bool:
        cursor = await conn.execute("DELETE FROM job_cards WHERE id = ?", (job_card_id,))
        deleted = cursor.rowcount > 0
        if deleted:
            logger.info("job_card_deleted", job_card_id=job_card_id)
        return deleted

    # --- Row mapping ---

    @staticmethod
    async def _fetch_grouped(conn, query, mapper, key: str = "stock_id") -> dict[str, list]:
        cursor = await conn.execute(query)
        grouped: dict[str, list] = defaultdict(list)
        for row in await cursor.fetchall():
            grouped[row[key]].append(mapper(row))
        return grouped

    @staticmethod
    def _row_to_stock_item(
        row: aiosqlite.Row,
        batches: list[Batch],
        usage: list[UsageRecord],
        writeoffs: list[WriteoffRecord],
    ) -> StockItem:
        """Convert a database row plus children to a StockItem entity."""
        return StockItem(
            id=row["id"],
            name=row["name"],
            category=row["category"],
            supplier_id=row["supplier_id"],
            part_number=row["part_number"],
            description=row["description"],
            batches=batches,
            total_quantity=float(row["total_quantity"]),
            average_cost=float(row["average_cost"]),
            usage_history=usage,
            writeoffs=writeoffs,
            version=row["version"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    @staticmethod
    def _row_to_batch(row: aiosqlite.Row) -> Batch:
        return Batch(
            batch_id=row["batch_id"],
            purchase_date=date.fromisoformat(row["purchase_date"]),
            quantity=float(row["quantity"]),
            unit_cost=float(row["unit_cost"]),
            invoice_number=row["invoice_number"],
        )

    @staticmethod
    def _row_to_usage(row: aiosqlite.Row) -> UsageRecord:
        return UsageRecord(
            id=row["id"],
            usage_date=date.fromisoformat(row["usage_date"]),
            quantity=float(row["quantity"]),
            cost=float(row["cost"]),
            job_card_id=row["job_card_id"],
            job_card_title=row["job_card_title"],
            asset_id=row["asset_id"],
            asset_name=row["asset_name"],
            costing_method=CostingMethod(row["costing_method"]),
        )

    @staticmethod
    def _row_to_writeoff(row: aiosqlite.Row) -> WriteoffRecord:
        return WriteoffRecord(
            id=row["id"],
            writeoff_date=date.fromisoformat(row["writeoff_date"]),
            quantity=float(row["quantity"]),
            cost=float(row["cost"]),
            reason=row["reason"],
            notes=row["notes"],
            costing_method=CostingMethod(row["costing_method"]),
        )

    @staticmethod
    def _row_to_line_item(row: aiosqlite.Row) -> JobCardLineItem:
        return JobCardLineItem(
            stock_id=row["stock_id"],
            quantity=float(row["quantity"]),
            description=row["description"],
            actual_cost=float(row["actual_cost"]),
        )

    @staticmethod
    def _row_to_job_card(row: aiosqlite.Row, items: list[JobCardLineItem]) -> JobCard:
        """Convert a database row to a JobCard entity."""
        return JobCard(
            id=row["id"],
            title=row["title"],
            asset_id=row["asset_id"],
            job_date=date.fromisoformat(row["job_date"]),
            description=row["description"],
            items=items,
            labor_cost=float(row["labor_cost"]),
            status=JobCardStatus(row["status"]),
            costing_method=(
                CostingMethod(row["costing_method"]) if row["costing_method"] else None
            ),
            completed_at=(
                datetime.fromisoformat(row["completed_at"]) if row["completed_at"] else None
            ),
            created_at=datetime.fromisoformat(row["created_at"]),
            version=row["version"],
        )
