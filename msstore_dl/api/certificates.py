"""
Builds the TLS trust contexts required by the update service endpoints.

The update service does not chain to the usual public roots, so each endpoint
family is called with a context that trusts only the vendor root it needs.
"""

import logging
import ssl

from cryptography import x509
from cryptography.hazmat.primitives import serialization

from msstore_dl.exceptions import TrustContextError
from msstore_dl.models.config import ResolverConfig
from msstore_dl.models.update import TrustContext, TrustContexts

from .transport import HttpTransport

log = logging.getLogger(__name__)


def der_to_pem(der_bytes: bytes) -> str:
    """
    Re-encodes a DER certificate as a PEM block, 64 base64 characters per line.

    Raises:
        TrustContextError: If the bytes are not an X.509 certificate.
    """
    try:
        cert = x509.load_der_x509_certificate(der_bytes)
    except ValueError as e:
        raise TrustContextError(f"Not a DER encoded certificate: {e}") from e
    return cert.public_bytes(serialization.Encoding.PEM).decode("ascii")


def build_trust_context(name: str, der_bytes: bytes) -> TrustContext:
    """
    Creates a TLS context whose only certificate authority is `der_bytes`.

    Raises:
        TrustContextError: If the bytes are not a parsable certificate.
    """
    pem = der_to_pem(der_bytes)
    try:
        # Passing cadata stops the system store from being loaded.
        ctx = ssl.create_default_context(cadata=pem)
    except ssl.SSLError as e:
        raise TrustContextError(f"Certificate rejected by the TLS library: {e}") from e
    return TrustContext(name=name, ssl_context=ctx)


async def load_trust_context(
    transport: HttpTransport, url: str, name: str
) -> TrustContext:
    """
    Fetches a certificate and turns it into a trust context.

    Raises:
        NetworkError: If the certificate cannot be fetched.
        TrustContextError: If the response is not a certificate.
    """
    log.info(f"🔄 Fetch necessary certificates: {name}")
    der_bytes = await transport.get_bytes(url)
    try:
        trust = build_trust_context(name, der_bytes)
    except TrustContextError as e:
        raise TrustContextError(
            f"Certificate from '{url}' could not be loaded: {e}"
        ) from e
    log.info(f"✅ Fetch necessary certificates: {name}")
    return trust


async def load_trust_contexts(
    transport: HttpTransport, config: ResolverConfig
) -> TrustContexts:
    """Loads the primary root and ECC root contexts, in that order."""
    root = await load_trust_context(
        transport, config.root_cert_url, "Microsoft Root"
    )
    ecc = await load_trust_context(
        transport, config.ecc_root_cert_url, "Microsoft ECC Root"
    )
    return TrustContexts(root=root, ecc=ecc)
