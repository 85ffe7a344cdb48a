"""
Service factory functions for dependency injection.

This module provides factory functions that wire configuration into core
services. Use cases should import from here.

Clean Architecture: Application layer orchestrates DI, not core layer.
"""

from src.config import get_settings
from src.core.services import JobCardSettlement, RestorationMode

# Singleton service instances
_job_card_settlement: JobCardSettlement | None = None


def get_job_card_settlement() -> JobCardSettlement:
    """Get or create the JobCardSettlement instance."""
    global _job_card_settlement
    if _job_card_settlement is None:
        _job_card_settlement = JobCardSettlement()
    return _job_card_settlement


def get_restoration_mode() -> RestorationMode:
    """Restoration mode used when completed job cards are deleted."""
    return RestorationMode(get_settings().costing.restoration_mode)


def reset_services() -> None:
    """Reset all service singletons (for testing)."""
    global _job_card_settlement
    _job_card_settlement = None
