from adapter_runtime.models.adapter import (
    AdapterDiscoveryResponse,
    AdapterMetadata,
    AdapterRequest,
    AdapterResponse,
)

__all__ = [
    "AdapterDiscoveryResponse",
    "AdapterMetadata",
    "AdapterRequest",
    "AdapterResponse",
]
