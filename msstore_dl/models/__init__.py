"""
Data Models Layer.

This package contains the dataclasses passed between pipeline stages and the
Pydantic model that validates configuration.
"""

from .config import ResolverConfig
from .product import ProductDescriptor, build_filename, package_family_prefix
from .update import (
    CorrelationResult,
    DownloadedFile,
    ResolutionReport,
    ResolvedLocation,
    SessionCookie,
    TrustContext,
    TrustContexts,
    UpdateIdentity,
)

__all__ = [
    "CorrelationResult",
    "DownloadedFile",
    "ProductDescriptor",
    "ResolutionReport",
    "ResolvedLocation",
    "ResolverConfig",
    "SessionCookie",
    "TrustContext",
    "TrustContexts",
    "UpdateIdentity",
    "build_filename",
    "package_family_prefix",
]
