"""API Routers package

Routers are organized by feature domain.
"""

from . import availability_router, counters_router, live_router, records_router

__all__ = [
    "availability_router",
    "counters_router",
    "live_router",
    "records_router",
]
