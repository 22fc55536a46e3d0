# API endpoints and routers

from .health_endpoints import router as health_router
from .expression_endpoints import router as expression_router
from .category_endpoints import router as category_router
from .chat_endpoints import router as chat_router
from .practice_endpoints import router as practice_router
from .stats_endpoints import router as stats_router

__all__ = [
    "health_router",
    "expression_router",
    "category_router",
    "chat_router",
    "practice_router",
    "stats_router",
]
