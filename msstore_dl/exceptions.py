"""
Defines custom exceptions for the application to allow for more specific error handling.

Fatal errors derive from `MsStoreError` and abort the run. Correlation problems
found while walking a sync document derive from `CorrelationWarning`. The
correlator collects those into its result instead of raising them.
"""


class MsStoreError(Exception):
    """Base exception for all fatal application errors."""


class NetworkError(MsStoreError):
    """Raised on a non-2xx status, a transport failure, a timeout or a failed write."""


class XmlParseError(MsStoreError):
    """Raised when a SOAP response body is not well-formed XML."""


class TrustContextError(MsStoreError):
    """Raised when fetched certificate bytes cannot be turned into a TLS context."""


class ProductNotFoundError(MsStoreError):
    """Raised when the catalog request fails or returns no payload."""


class SkuNotFoundError(MsStoreError):
    """Raised when a catalog product carries no SKU."""


class FulfillmentMissingError(MsStoreError):
    """
    Raised when a SKU has no usable fulfillment data. This usually means the
    product is a Win32 app that is not distributed through the update service.
    """


class CookieMissingError(MsStoreError):
    """Raised when the GetCookie response has no (or an empty) encrypted cookie."""


class ConfigurationError(MsStoreError):
    """Raised for issues related to configuration loading or validation."""


class CorrelationWarning(UserWarning):
    """Base class for recoverable problems found while correlating a sync document."""


class FileNodeCorrelationWarning(CorrelationWarning):
    """A `Files` node could not be tied to a file id and filename."""


class FragmentCorrelationWarning(CorrelationWarning):
    """A `SecuredFragment` node could not be tied to an update identity."""
