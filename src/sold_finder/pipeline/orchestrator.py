"""Search orchestration: fetch both registries, fall back, reconcile, assemble.

Per search the certificate fetch starts immediately and runs alongside the
sales fetch. Sales are first requested for the exact postcode; only when
that returns nothing is the broader sector query issued. The certificate
result is fetched once and reused whichever sales path ran.
"""

import asyncio
from dataclasses import dataclass

import httpx

from sold_finder.config import Settings
from sold_finder.logging import get_logger
from sold_finder.models import (
    CertificateRecord,
    FetchResult,
    NormalizedPostcode,
    QueryMode,
    SaleRecord,
    UnifiedProperty,
)
from sold_finder.pipeline.assembly import assemble_results
from sold_finder.pipeline.reconciliation import reconcile
from sold_finder.sources import EPCSource, LandRegistrySource
from sold_finder.utils.postcode import normalize_postcode

logger = get_logger(__name__)


@dataclass
class SearchOutcome:
    """Everything one search produced, including per-source diagnostics."""

    postcode: NormalizedPostcode
    properties: list[UnifiedProperty]
    sales_mode: QueryMode
    sales: FetchResult[SaleRecord]
    certificates: FetchResult[CertificateRecord]


class PropertySearch:
    """Sold-property search over the Land Registry and EPC sources.

    Holds only configuration and sources; every search keeps its fetched
    records to itself, so one instance can serve concurrent requests.
    """

    def __init__(
        self,
        sales: LandRegistrySource,
        certificates: EPCSource,
        *,
        default_city: str = "London",
    ) -> None:
        self.sales = sales
        self.certificates = certificates
        self.default_city = default_city

    @classmethod
    def from_settings(
        cls, settings: Settings, *, client: httpx.AsyncClient | None = None
    ) -> "PropertySearch":
        return cls(
            LandRegistrySource.from_settings(settings, client=client),
            EPCSource.from_settings(settings, client=client),
            default_city=settings.default_city,
        )

    async def _fetch_sales(
        self, postcode: NormalizedPostcode
    ) -> tuple[QueryMode, FetchResult[SaleRecord]]:
        exact = await self.sales.fetch_exact(postcode)
        if exact.records:
            return QueryMode.EXACT, exact

        logger.info(
            "escalating_to_sector_search",
            postcode=postcode.full,
            sector=postcode.sector,
            exact_failed=not exact.ok,
        )
        return QueryMode.SECTOR, await self.sales.fetch_sector(postcode)

    async def search(self, raw_postcode: str | None) -> SearchOutcome:
        """Run one search.

        Raises:
            MissingInputError: If the postcode is missing or blank. No
                upstream request is made in that case.
        """
        postcode = normalize_postcode(raw_postcode)
        logger.info("searching_postcode", postcode=postcode.full)

        (sales_mode, sales), certificates = await asyncio.gather(
            self._fetch_sales(postcode),
            self.certificates.fetch(postcode),
        )

        matches = reconcile(sales.records, certificates.records)
        properties = assemble_results(matches, postcode, default_city=self.default_city)

        logger.info(
            "search_complete",
            postcode=postcode.full,
            sales_mode=sales_mode.value,
            sales=len(sales.records),
            certificates=len(certificates.records),
            results=len(properties),
        )
        return SearchOutcome(
            postcode=postcode,
            properties=properties,
            sales_mode=sales_mode,
            sales=sales,
            certificates=certificates,
        )


async def search_properties(
    raw_postcode: str | None,
    settings: Settings | None = None,
    *,
    client: httpx.AsyncClient | None = None,
) -> list[UnifiedProperty]:
    """Convenience wrapper: build a PropertySearch from settings and run it."""
    if settings is None:
        settings = Settings()
    outcome = await PropertySearch.from_settings(settings, client=client).search(raw_postcode)
    return outcome.properties
