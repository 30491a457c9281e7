"""
Provider integrations for the epic router.

Provider profile routing and provider availability tracking.
"""

from epic_router.integrations.provider_health import (
    AlwaysAvailable,
    ProviderHealthCheck,
    ProviderHealthTracker,
    ProviderStatus,
)
from epic_router.integrations.provider_routing import (
    DEVELOPMENT_DOMAINS,
    NARRATIVE_DOMAINS,
    ProviderRoutingTable,
)

__all__ = [
    "AlwaysAvailable",
    "DEVELOPMENT_DOMAINS",
    "NARRATIVE_DOMAINS",
    "ProviderHealthCheck",
    "ProviderHealthTracker",
    "ProviderRoutingTable",
    "ProviderStatus",
]
