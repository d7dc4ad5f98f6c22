import ssl

import pytest
from aioresponses import aioresponses

from msstore_dl.api.transport import HttpTransport
from msstore_dl.models.config import ResolverConfig
from msstore_dl.models.update import TrustContext
from soap_fixtures import make_ca_der


@pytest.fixture(scope="session")
def root_der() -> bytes:
    return make_ca_der("Test Root")


@pytest.fixture(scope="session")
def ecc_der() -> bytes:
    return make_ca_der("Test ECC Root")


@pytest.fixture
def config() -> ResolverConfig:
    return ResolverConfig()


@pytest.fixture
def trust_root() -> TrustContext:
    return TrustContext(name="root", ssl_context=ssl.create_default_context())


@pytest.fixture
def trust_ecc() -> TrustContext:
    return TrustContext(name="ecc", ssl_context=ssl.create_default_context())


@pytest.fixture
def mocked():
    with aioresponses() as m:
        yield m


@pytest.fixture
async def transport():
    t = HttpTransport(timeout=5)
    yield t
    await t.close()
