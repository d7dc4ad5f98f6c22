"""
The main orchestrator: from a store product id to package files on disk.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

from rich.progress import Progress

from msstore_dl.api.catalog import ProductCatalogResolver
from msstore_dl.api.certificates import load_trust_contexts
from msstore_dl.api.transport import HttpTransport
from msstore_dl.api.update_service import (
    CookieNegotiator,
    FileLocationResolver,
    UpdateSyncClient,
)
from msstore_dl.models.config import ResolverConfig
from msstore_dl.models.update import (
    DownloadedFile,
    ResolutionReport,
    TrustContext,
    UpdateIdentity,
)
from msstore_dl.transfer.downloader import Downloader
from msstore_dl.utils.path import create_dir, destination_for

from .correlator import ResponseCorrelator

log = logging.getLogger(__name__)


class ResolutionPipeline:
    """
    Orchestrates one resolution run.

    Stages up to correlation run one after another. After that, one task per
    correlated file resolves its URL and downloads it. All tasks are awaited
    before the first failure (if any) is raised, so a failing download never
    cancels its siblings.
    """

    def __init__(
        self,
        config: ResolverConfig,
        transport: HttpTransport,
        progress: Optional[Progress] = None,
    ):
        self.config = config
        self.transport = transport
        self.catalog = ProductCatalogResolver(transport, config)
        self.cookie_negotiator = CookieNegotiator(transport, config)
        self.sync_client = UpdateSyncClient(transport, config)
        self.location_resolver = FileLocationResolver(transport, config)
        self.downloader = Downloader(transport, progress)
        # Unbounded unless configured.
        self.semaphore = (
            asyncio.Semaphore(config.max_concurrency)
            if config.max_concurrency
            else None
        )

    async def run(self, product_id: str, output_path: Path) -> ResolutionReport:
        trust = await load_trust_contexts(self.transport, self.config)
        await asyncio.to_thread(create_dir, output_path)

        product = await self.catalog.resolve_product(product_id)
        cookie = await self.cookie_negotiator.negotiate_cookie(trust.ecc)

        log.info(f"🔄 Fetch updates for product {product_id}")
        doc = await self.sync_client.sync_updates(cookie, product.category_id, trust.root)
        log.info(f"✅ Fetch updates for product {product_id}")

        correlation = ResponseCorrelator(product.package_family_prefix).correlate(doc)
        report = ResolutionReport(product=product, warnings=list(correlation.warnings))
        if not correlation.updates:
            log.warning(
                f"[yellow]No package files matched '{product.package_family_prefix}'."
                "[/yellow]"
            )
            return report

        filenames = list(correlation.updates)
        outcomes = await asyncio.gather(
            *(
                self._process_file(name, correlation.updates[name], trust.ecc, output_path)
                for name in filenames
            ),
            return_exceptions=True,
        )

        failures = []
        for filename, outcome in zip(filenames, outcomes):
            if isinstance(outcome, BaseException):
                log.debug(f"Processing {filename} failed: {outcome!r}")
                failures.append(outcome)
            elif outcome is None:
                report.unresolved.append(filename)
            else:
                report.downloaded.append(outcome)
        if failures:
            raise failures[0]
        return report

    async def _process_file(
        self,
        filename: str,
        identity: UpdateIdentity,
        trust: TrustContext,
        output_path: Path,
    ) -> Optional[DownloadedFile]:
        if self.semaphore is None:
            return await self._fetch_file(filename, identity, trust, output_path)
        async with self.semaphore:
            return await self._fetch_file(filename, identity, trust, output_path)

    async def _fetch_file(
        self,
        filename: str,
        identity: UpdateIdentity,
        trust: TrustContext,
        output_path: Path,
    ) -> Optional[DownloadedFile]:
        location = await self.location_resolver.resolve_url(filename, identity, trust)
        if location is None:
            return None

        destination = destination_for(output_path, location.filename)
        log.info(f"🔄 Pull {filename} from {location.url}")
        size = await self.downloader.download(location.url, destination)
        log.info(f"✅ Pull {filename} from {location.url}")
        return DownloadedFile(
            filename=filename, path=destination, size_bytes=size, url=location.url
        )


async def fetch_product(
    product_id: str,
    output_path: Path,
    config: Optional[ResolverConfig] = None,
    progress: Optional[Progress] = None,
) -> ResolutionReport:
    """Runs a full resolution with its own transport, closing it afterwards."""
    config = config or ResolverConfig()
    async with HttpTransport(config.timeout) as transport:
        return await ResolutionPipeline(config, transport, progress).run(
            product_id, output_path
        )
