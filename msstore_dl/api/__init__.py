"""
Microsoft Store and Windows Update API Layer.

This package handles all communication with the storefront catalog and the
update distribution service.
"""

from .catalog import ProductCatalogResolver
from .certificates import load_trust_context, load_trust_contexts
from .transport import HttpTransport
from .update_service import CookieNegotiator, FileLocationResolver, UpdateSyncClient

__all__ = [
    "CookieNegotiator",
    "FileLocationResolver",
    "HttpTransport",
    "ProductCatalogResolver",
    "UpdateSyncClient",
    "load_trust_context",
    "load_trust_contexts",
]
