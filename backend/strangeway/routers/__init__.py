from .filter import router as filter_router
from .health import router as health_router

__all__ = ["filter_router", "health_router"]
