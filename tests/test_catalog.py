import json

import pytest

from msstore_dl.api.catalog import ProductCatalogResolver
from msstore_dl.exceptions import (
    FulfillmentMissingError,
    ProductNotFoundError,
    SkuNotFoundError,
)

PRODUCT_ID = "9N0DX20HK701"
FULFILLMENT = {
    "WuCategoryId": "61fc1ad5-d8ba-4f8c-b4bd-8a85a61d5d1e",
    "PackageFamilyName": "Microsoft.WindowsTerminal_8wekyb3d8bbwe",
    "SkuId": "0010",
}


@pytest.fixture
def resolver(transport, config):
    return ProductCatalogResolver(transport, config)


def _product(fulfillment) -> dict:
    return {"Payload": {"Skus": [{"SkuId": "0010", "FulfillmentData": fulfillment}]}}


def test_product_url(resolver):
    assert resolver.product_url(PRODUCT_ID) == (
        "https://storeedgefd.dsx.mp.microsoft.com/v9.0/products/9N0DX20HK701"
        "?market=US&locale=en-us&deviceFamily=Windows.Desktop"
    )


class TestResolveProduct:
    @pytest.mark.parametrize("fulfillment", [FULFILLMENT, json.dumps(FULFILLMENT)])
    async def test_success(self, mocked, resolver, fulfillment):
        mocked.get(resolver.product_url(PRODUCT_ID), payload=_product(fulfillment))

        product = await resolver.resolve_product(PRODUCT_ID)

        assert product.product_id == PRODUCT_ID
        assert product.sku_id == "0010"
        assert product.category_id == FULFILLMENT["WuCategoryId"]
        assert product.package_family_name == FULFILLMENT["PackageFamilyName"]
        assert product.package_family_prefix == "Microsoft.WindowsTerminal"

    async def test_http_error(self, mocked, resolver):
        mocked.get(resolver.product_url(PRODUCT_ID), status=404)
        with pytest.raises(ProductNotFoundError):
            await resolver.resolve_product(PRODUCT_ID)

    async def test_invalid_json(self, mocked, resolver):
        mocked.get(resolver.product_url(PRODUCT_ID), body="not json")
        with pytest.raises(ProductNotFoundError):
            await resolver.resolve_product(PRODUCT_ID)

    @pytest.mark.parametrize(
        "body", [{}, {"Payload": None}, [], {"Payload": "x"}, {"Payload": ["x"]}]
    )
    async def test_no_payload(self, mocked, resolver, body):
        mocked.get(resolver.product_url(PRODUCT_ID), payload=body)
        with pytest.raises(ProductNotFoundError, match=PRODUCT_ID):
            await resolver.resolve_product(PRODUCT_ID)

    @pytest.mark.parametrize("skus", [[], None, "abc", ["x"], [None], [{}], {"SkuId": "0010"}])
    async def test_no_sku(self, mocked, resolver, skus):
        mocked.get(resolver.product_url(PRODUCT_ID), payload={"Payload": {"Skus": skus}})
        with pytest.raises(SkuNotFoundError):
            await resolver.resolve_product(PRODUCT_ID)

    @pytest.mark.parametrize(
        "fulfillment",
        [
            None,
            "{broken",
            {"PackageFamilyName": "A_b"},
            {"WuCategoryId": "cat"},
            {"WuCategoryId": "", "PackageFamilyName": "A_b"},
        ],
    )
    async def test_missing_fulfillment(self, mocked, resolver, fulfillment):
        mocked.get(resolver.product_url(PRODUCT_ID), payload=_product(fulfillment))
        with pytest.raises(FulfillmentMissingError, match="Win32"):
            await resolver.resolve_product(PRODUCT_ID)
