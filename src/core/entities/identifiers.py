"""Typed identifiers, one per entity."""

from typing import NewType
from uuid import uuid4

StockId = NewType("StockId", str)
BatchId = NewType("BatchId", str)
JobCardId = NewType("JobCardId", str)
AssetId = NewType("AssetId", str)
SupplierId = NewType("SupplierId", str)


def new_stock_id() -> StockId:
    return StockId(f"STK-{uuid4().hex[:12]}")


def new_batch_id() -> BatchId:
    return BatchId(f"BAT-{uuid4().hex[:12]}")


def new_job_card_id() -> JobCardId:
    return JobCardId(f"JC-{uuid4().hex[:12]}")
