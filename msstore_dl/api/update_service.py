"""
Clients for the three Windows Update web service calls used to locate package
files: GetCookie, SyncUpdates and GetExtendedUpdateInfo2.
"""

import html
import logging
from typing import Optional

from msstore_dl.core.document import SyncDocument
from msstore_dl.exceptions import CookieMissingError
from msstore_dl.models.config import ResolverConfig
from msstore_dl.models.update import (
    ResolvedLocation,
    SessionCookie,
    TrustContext,
    UpdateIdentity,
)

from . import envelopes
from .transport import HttpTransport

log = logging.getLogger(__name__)

# The service mixes placeholder locations of exactly this length in with the
# real ones. Kept verbatim; it has not been confirmed against a published spec.
PLACEHOLDER_URL_LENGTH = 99


async def _post(
    transport: HttpTransport,
    url: str,
    envelope: str,
    trust: TrustContext,
    unescape: bool = False,
) -> SyncDocument:
    body = await transport.post_soap(url, envelope, trust)
    if unescape:
        # SyncUpdates returns the per-update XML entity-encoded inside <Xml>.
        body = html.unescape(body)
    return SyncDocument.from_xml(body)


class CookieNegotiator:
    """Obtains the encrypted session cookie that SyncUpdates requires."""

    def __init__(self, transport: HttpTransport, config: ResolverConfig):
        self._transport = transport
        self._config = config

    async def negotiate_cookie(self, trust: TrustContext) -> SessionCookie:
        """
        Calls GetCookie against the cross-region endpoint.

        Args:
            trust: The ECC root trust context.

        Raises:
            CookieMissingError: No `EncryptedData` element, or it is empty.
        """
        log.info("🔄 Fetch cookie")
        endpoint = self._config.cookie_endpoint
        doc = await _post(
            self._transport, endpoint, envelopes.get_cookie_envelope(endpoint), trust
        )
        log.info("✅ Fetch cookie")

        matches = doc.named("EncryptedData")
        if not matches:
            log.info("❌ Cannot find cookie in response")
            raise CookieMissingError("Cannot find cookie in response")
        cookie = doc.text(matches[0])
        if not cookie:
            log.info("❌ Cookie is empty")
            raise CookieMissingError("Cookie is empty")
        return SessionCookie(encrypted_data=cookie)


class UpdateSyncClient:
    """Runs the SyncUpdates query for one app category."""

    def __init__(self, transport: HttpTransport, config: ResolverConfig):
        self._transport = transport
        self._config = config

    async def sync_updates(
        self, cookie: SessionCookie, category_id: str, trust: TrustContext
    ) -> SyncDocument:
        """
        Args:
            cookie: Cookie from `CookieNegotiator`.
            category_id: The product's `WuCategoryId`.
            trust: The primary root trust context.

        Raises:
            NetworkError: On transport failure.
            XmlParseError: If the unescaped response is not well-formed.
        """
        endpoint = self._config.sync_endpoint
        envelope = envelopes.sync_updates_envelope(
            endpoint,
            encrypted_cookie=cookie.encrypted_data,
            cookie_expiration=cookie.expiration,
            category_id=category_id,
        )
        doc = await _post(self._transport, endpoint, envelope, trust, unescape=True)
        log.debug(f"SyncUpdates returned {len(doc)} elements")
        return doc


def select_url(doc: SyncDocument) -> Optional[str]:
    """
    Picks the first `FileLocation` URL in document order whose length is not
    `PLACEHOLDER_URL_LENGTH`.
    """
    for location in doc.named("FileLocation"):
        url = doc.text(doc.first_descendant(location, "Url"))
        if url and len(url) != PLACEHOLDER_URL_LENGTH:
            return url
    return None


class FileLocationResolver:
    """Resolves the signed download URL of an update's package file."""

    def __init__(self, transport: HttpTransport, config: ResolverConfig):
        self._transport = transport
        self._config = config

    async def resolve_url(
        self, filename: str, identity: UpdateIdentity, trust: TrustContext
    ) -> Optional[ResolvedLocation]:
        """
        Calls GetExtendedUpdateInfo2 for `identity`.

        Args:
            filename: Correlated filename, carried through to the result.
            identity: Update id and revision from the correlator.
            trust: The ECC root trust context.

        Returns:
            The accepted location, or None when every candidate was rejected.
        """
        log.info(f"🔄 Fetch URLs for {filename}")
        endpoint = self._config.secured_endpoint
        envelope = envelopes.get_extended_update_info2_envelope(
            endpoint, identity.update_id, identity.revision_number
        )
        doc = await _post(self._transport, endpoint, envelope, trust)
        log.info(f"✅ Fetch URLs for {filename}")

        url = select_url(doc)
        if url is None:
            log.debug(f"No usable location for {filename} ({identity.update_id})")
            return None
        return ResolvedLocation(filename=filename, url=url)
