# === NAVMAP v1 ===
# {
#   "module": "BioPortalLookup.network.__init__",
#   "purpose": "HTTP transport, call dispatching and call statistics.",
#   "sections": []
# }
# === /NAVMAP ===

"""HTTP networking subsystem.

Modules:
- client: HTTPX client factory and shared PID-aware client
- dispatcher: rate-limited, instrumented GET dispatcher
- instrumentation: call throughput statistics
"""

from BioPortalLookup.network.client import (
    close_http_client,
    create_http_client,
    get_http_client,
    reset_http_client,
)
from BioPortalLookup.network.dispatcher import (
    CallDispatcher,
    Document,
    quote_segment,
    rate_limited,
)
from BioPortalLookup.network.instrumentation import (
    CallStatistics,
    StatisticsSummary,
    instrumented,
)

__all__ = [
    # Client
    "get_http_client",
    "close_http_client",
    "reset_http_client",
    "create_http_client",
    # Dispatcher
    "CallDispatcher",
    "Document",
    "rate_limited",
    "quote_segment",
    # Statistics
    "CallStatistics",
    "StatisticsSummary",
    "instrumented",
]
