"""
Pydantic model for application configuration.
Provides robust validation for all settings.
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

CATALOG_BASE_URL = "https://storeedgefd.dsx.mp.microsoft.com/v9.0"
SYNC_ENDPOINT = "https://fe3.delivery.mp.microsoft.com/ClientWebService/client.asmx"
COOKIE_ENDPOINT = "https://fe3cr.delivery.mp.microsoft.com/ClientWebService/client.asmx"
ROOT_CERT_URL = "https://www.microsoft.com/pki/certs/MicRooCerAut2011_2011_03_22.crt"
ECC_ROOT_CERT_URL = (
    "https://www.microsoft.com/pkiops/certs/"
    "Microsoft%20ECC%20Product%20Root%20Certificate%20Authority%202018.crt"
)

DEFAULT_TIMEOUT = 120.0


class ResolverConfig(BaseModel):
    """A validated configuration model for a resolution run."""

    # Network
    timeout: float = DEFAULT_TIMEOUT
    max_concurrency: Optional[int] = None

    # Catalog query
    market: str = "US"
    locale: str = "en-us"
    device_family: str = "Windows.Desktop"

    # Endpoints
    catalog_base_url: str = CATALOG_BASE_URL
    sync_endpoint: str = SYNC_ENDPOINT
    cookie_endpoint: str = COOKIE_ENDPOINT
    root_cert_url: str = ROOT_CERT_URL
    ecc_root_cert_url: str = ECC_ROOT_CERT_URL

    output_path: str = Field(default=".")

    class Config:
        """Pydantic model configuration."""

        validate_assignment = True
        str_strip_whitespace = True

    @property
    def secured_endpoint(self) -> str:
        """GetExtendedUpdateInfo2 lives under the cookie endpoint."""
        return f"{self.cookie_endpoint}/secured"

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Timeout must be a positive number of seconds.")
        return v

    @field_validator("max_concurrency")
    @classmethod
    def validate_concurrency(cls, v: Optional[int]) -> Optional[int]:
        """`None` (or 0 from an INI file) keeps the fan-out unbounded."""
        if v is None or v == 0:
            return None
        if v < 0:
            raise ValueError("Max concurrency must be at least 1.")
        return v

    @field_validator(
        "catalog_base_url",
        "sync_endpoint",
        "cookie_endpoint",
        "root_cert_url",
        "ecc_root_cert_url",
    )
    @classmethod
    def validate_https(cls, v: str) -> str:
        if not v.startswith("https://"):
            raise ValueError(f"Endpoint must be an https:// URL, got: {v}")
        return v.rstrip("/")

    @field_validator("market", "locale", "device_family", "output_path")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("Value cannot be empty.")
        return v

    @classmethod
    def get_ini_keys(cls) -> set[str]:
        """Returns a set of all keys that may appear in the INI file."""
        return set(cls.model_fields)
