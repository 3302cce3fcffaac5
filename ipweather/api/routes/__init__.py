from __future__ import annotations

from ipweather.api.routes.forecast import router as forecast_router
from ipweather.api.routes.health import router as health_router

__all__ = ["forecast_router", "health_router"]
