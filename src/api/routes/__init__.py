"""API route modules."""

from src.api.routes.health import router as health_router
from src.api.routes.job_cards import router as job_cards_router
from src.api.routes.purchases import router as purchases_router
from src.api.routes.reports import router as reports_router
from src.api.routes.settings import router as settings_router
from src.api.routes.stock import router as stock_router

__all__ = [
    "health_router",
    "stock_router",
    "purchases_router",
    "job_cards_router",
    "reports_router",
    "settings_router",
]
