"""
Looks up a product in the Microsoft Store catalog and extracts the fulfillment
data that scopes the update service query.
"""

import json
import logging
from typing import Any, Dict, Optional

from msstore_dl.exceptions import (
    FulfillmentMissingError,
    NetworkError,
    ProductNotFoundError,
    SkuNotFoundError,
)
from msstore_dl.models.config import ResolverConfig
from msstore_dl.models.product import ProductDescriptor

from .transport import HttpTransport

log = logging.getLogger(__name__)


class ProductCatalogResolver:
    """Resolves a store product id into a `ProductDescriptor`."""

    def __init__(self, transport: HttpTransport, config: ResolverConfig):
        self._transport = transport
        self._config = config

    def product_url(self, product_id: str) -> str:
        return (
            f"{self._config.catalog_base_url}/products/{product_id}"
            f"?market={self._config.market}&locale={self._config.locale}"
            f"&deviceFamily={self._config.device_family}"
        )

    async def resolve_product(self, product_id: str) -> ProductDescriptor:
        """
        Fetches the product and returns the category id and package family
        name of its first SKU.

        Raises:
            ProductNotFoundError: The request failed or returned no payload.
            SkuNotFoundError: The payload lists no SKU.
            FulfillmentMissingError: The SKU has no usable fulfillment data.
        """
        try:
            response = await self._transport.get_json(self.product_url(product_id))
        except (NetworkError, ValueError) as e:
            log.info(f"❌ Product {product_id} not found")
            raise ProductNotFoundError(f"Product {product_id} not found") from e

        payload = response.get("Payload") if isinstance(response, dict) else None
        if not isinstance(payload, dict) or not payload:
            log.info(f"❌ Product {product_id} not found")
            raise ProductNotFoundError(f"Product {product_id} not found")

        skus = payload.get("Skus")
        sku = skus[0] if isinstance(skus, list) and skus else None
        if not isinstance(sku, dict) or not sku:
            log.info(f"❌ No SKU found for product {product_id}")
            raise SkuNotFoundError(f"No SKU found for product {product_id}")

        fulfillment = self._parse_fulfillment(sku.get("FulfillmentData"))
        category_id = (fulfillment or {}).get("WuCategoryId")
        package_family_name = (fulfillment or {}).get("PackageFamilyName")
        if not category_id or not package_family_name:
            log.info("❓ Cannot find fulfillment data, consider this a Win32 app")
            raise FulfillmentMissingError(
                "Cannot find fulfillment data, consider this a Win32 app"
            )

        descriptor = ProductDescriptor(
            product_id=product_id,
            sku_id=str(sku.get("SkuId", "")),
            category_id=str(category_id),
            package_family_name=str(package_family_name),
        )
        log.debug(f"Resolved {descriptor}")
        return descriptor

    @staticmethod
    def _parse_fulfillment(raw: Any) -> Optional[Dict[str, Any]]:
        """Fulfillment data arrives either as an object or as a JSON string."""
        if isinstance(raw, str):
            try:
                raw = json.loads(raw)
            except ValueError:
                return None
        return raw if isinstance(raw, dict) else None
