"""
Adapter Registry
================

The closed set of adapter ids this client may call. Membership is checked at
invocation time; unknown ids raise ``InvalidAdapterError`` before any network
activity.
"""

from collections.abc import Iterable, Mapping
from types import MappingProxyType

from adapter_runtime.core.exceptions import InvalidAdapterError
from adapter_runtime.core.types import AdapterType

ADAPTER_REGISTRY: Mapping[str, AdapterType] = MappingProxyType(
    {
        # Document processing tools
        "pdf-text-extractor": AdapterType.TOOL,
        # Legal analysis
        "persona-legal": AdapterType.PROMPT,
        "vector-search-legal": AdapterType.TOOL,
        "risk-analyzer": AdapterType.TOOL,
        # Notification & logging
        "slack-sender": AdapterType.ACTION,
        "db-logger": AdapterType.ACTION,
        "telegram-alert": AdapterType.ACTION,
    }
)


def adapter_ids() -> tuple[str, ...]:
    """All registered ids, in registry order."""
    return tuple(ADAPTER_REGISTRY)


def is_valid_adapter_id(adapter_id: object) -> bool:
    return isinstance(adapter_id, str) and adapter_id in ADAPTER_REGISTRY


def validate_adapter_id(adapter_id: str) -> str:
    """Return ``adapter_id`` unchanged, or raise ``InvalidAdapterError``."""
    if not is_valid_adapter_id(adapter_id):
        raise InvalidAdapterError(str(adapter_id))
    return adapter_id


def validate_adapter_ids(ids: Iterable[str]) -> list[str]:
    return [validate_adapter_id(adapter_id) for adapter_id in ids]


def get_adapter_type(adapter_id: str) -> AdapterType:
    return ADAPTER_REGISTRY[validate_adapter_id(adapter_id)]
