"""API routers package."""

from .blends import router as blends_router
from .common import router as common_router
from .comparisons import router as comparisons_router
from .metrics import router as metrics_router
from .pricing import router as pricing_router

__all__ = [
    "blends_router",
    "common_router",
    "comparisons_router",
    "metrics_router",
    "pricing_router",
]
