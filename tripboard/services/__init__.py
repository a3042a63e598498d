"""Services layer - business logic around the repositories

Services are created once at startup and reached through dependency injection.
"""

from .counter_admin import CounterAdminService
from .provisioning import ProvisioningReport, ProvisioningService, provisioning_loop

__all__ = [
    "CounterAdminService",
    "ProvisioningReport",
    "ProvisioningService",
    "provisioning_loop",
]
