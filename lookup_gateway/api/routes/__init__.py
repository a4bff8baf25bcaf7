from __future__ import annotations

from lookup_gateway.api.routes.health import router as health_router
from lookup_gateway.api.routes.lookup import router as lookup_router

__all__ = ["health_router", "lookup_router"]
