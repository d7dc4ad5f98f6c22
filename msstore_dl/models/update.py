"""
Dataclasses passed between the stages of a resolution run.
"""

import ssl
from dataclasses import dataclass, field
from pathlib import Path

from msstore_dl.exceptions import CorrelationWarning

from .product import ProductDescriptor

# The update service accepts this fixed expiration for every cookie.
COOKIE_EXPIRATION = "2045-03-11T02:02:48Z"


@dataclass(frozen=True)
class TrustContext:
    """A TLS context that trusts exactly one root certificate."""

    name: str
    ssl_context: ssl.SSLContext = field(repr=False, compare=False)


@dataclass(frozen=True)
class TrustContexts:
    """
    The two trust contexts of a run. `root` is used for SyncUpdates only and
    `ecc` for GetCookie and GetExtendedUpdateInfo2; the services behind them
    present different CA chains, so one cannot stand in for the other.
    """

    root: TrustContext
    ecc: TrustContext


@dataclass(frozen=True)
class SessionCookie:
    encrypted_data: str
    expiration: str = COOKIE_EXPIRATION


@dataclass(frozen=True)
class UpdateIdentity:
    """Identifies one revision of an update in the service catalog."""

    update_id: str
    revision_number: str


@dataclass(frozen=True)
class ResolvedLocation:
    filename: str
    url: str


@dataclass
class CorrelationResult:
    """
    Output of correlating a sync document.

    `files` maps file ids to filenames, `updates` maps filenames to update
    identities. `warnings` holds the recoverable problems for nodes that were
    skipped; their presence does not make the result invalid.
    """

    files: dict[str, str] = field(default_factory=dict)
    updates: dict[str, UpdateIdentity] = field(default_factory=dict)
    warnings: list[CorrelationWarning] = field(default_factory=list)


@dataclass(frozen=True)
class DownloadedFile:
    filename: str
    path: Path
    size_bytes: int
    url: str


@dataclass
class ResolutionReport:
    """Summary of a completed run."""

    product: ProductDescriptor
    downloaded: list[DownloadedFile] = field(default_factory=list)
    # Updates for which the service offered no acceptable URL. They are not
    # treated as failures.
    unresolved: list[str] = field(default_factory=list)
    warnings: list[CorrelationWarning] = field(default_factory=list)

    @property
    def total_size(self) -> int:
        return sum(f.size_bytes for f in self.downloaded)
