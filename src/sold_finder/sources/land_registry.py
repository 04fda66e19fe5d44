"""HM Land Registry Price Paid Data source (SPARQL)."""

import re
from typing import Any, Final

import httpx

from sold_finder.config import Settings
from sold_finder.errors import MalformedUpstreamPayloadError
from sold_finder.logging import get_logger
from sold_finder.models import FetchResult, NormalizedPostcode, QueryMode, SaleRecord
from sold_finder.sources.base import BaseSource

logger = get_logger(__name__)

LAND_REGISTRY_URL: Final = "https://landregistry.data.gov.uk/landregistry/query"

EXACT_LIMIT: Final = 50
SECTOR_LIMIT: Final = 20

_PREFIXES: Final = """\
prefix rdf: <http://www.w3.org/1999/02/22-rdf-syntax-ns#>
prefix rdfs: <http://www.w3.org/2000/01/rdf-schema#>
prefix xsd: <http://www.w3.org/2001/XMLSchema#>
prefix lrppi: <http://landregistry.data.gov.uk/def/ppi/>
prefix lrcommon: <http://landregistry.data.gov.uk/def/common/>"""

_TRANSACTION_PATTERN: Final = """\
  ?transx lrppi:pricePaid ?price ;
          lrppi:transactionDate ?date ;
          lrppi:propertyType ?typeRef ;
          lrppi:propertyAddress ?addr .
  ?typeRef rdfs:label ?type .
  OPTIONAL { ?addr lrcommon:paon ?paon }
  OPTIONAL { ?addr lrcommon:saon ?saon }
  OPTIONAL { ?addr lrcommon:street ?street }"""

# Postcodes are letters and digits only; anything else is stripped before it
# reaches a query literal.
_UNSAFE_LITERAL_CHARS = re.compile(r"[^A-Z0-9]")


def encode_postcode_literal(value: str) -> str:
    """Reduce a postcode to characters that are safe inside a SPARQL literal.

    Raises:
        ValueError: If nothing queryable is left.
    """
    encoded = _UNSAFE_LITERAL_CHARS.sub("", value.upper())
    if not encoded:
        raise ValueError(f"No queryable characters in postcode {value!r}")
    return encoded


def build_sales_query(postcode: NormalizedPostcode, mode: QueryMode) -> str:
    """Build the SPARQL query for an exact or sector sales search.

    Exact mode matches the compact postcode literally and returns the 50
    most recent sales. Sector mode matches any postcode starting with the
    sector (case-insensitive, spaces ignored), returns the 20 most recent
    sales and projects ``?postcode`` so each sale keeps its own postcode.
    """
    if mode is QueryMode.EXACT:
        literal = encode_postcode_literal(postcode.compact)
        return (
            f"{_PREFIXES}\n\n"
            "SELECT ?date ?price ?paon ?saon ?street ?type WHERE {\n"
            f"{_TRANSACTION_PATTERN}\n"
            f'  ?addr lrcommon:postcode "{literal}"^^xsd:string .\n'
            f"}} ORDER BY DESC(?date) LIMIT {EXACT_LIMIT}\n"
        )

    literal = encode_postcode_literal(postcode.sector)
    return (
        f"{_PREFIXES}\n\n"
        "SELECT ?date ?price ?paon ?saon ?street ?type ?postcode WHERE {\n"
        f"{_TRANSACTION_PATTERN}\n"
        "  ?addr lrcommon:postcode ?postcode .\n"
        f'  FILTER(REGEX(REPLACE(STR(?postcode), " ", ""), "^{literal}", "i"))\n'
        f"}} ORDER BY DESC(?date) LIMIT {SECTOR_LIMIT}\n"
    )


def _binding_value(binding: dict[str, Any], key: str) -> str:
    cell = binding.get(key)
    if not isinstance(cell, dict):
        return ""
    return str(cell.get("value", "")).strip()


def _binding_to_sale(binding: dict[str, Any], default_postcode: str) -> SaleRecord:
    date = _binding_value(binding, "date")
    price = _binding_value(binding, "price")
    if not date or not price:
        raise ValueError("binding has no date or price")

    return SaleRecord(
        date=date[:10],
        price=int(float(price)),
        building_number=_binding_value(binding, "paon"),
        sub_building=_binding_value(binding, "saon"),
        street=_binding_value(binding, "street"),
        property_type_label=_binding_value(binding, "type"),
        source_postcode=_binding_value(binding, "postcode") or default_postcode,
    )


def parse_sale_bindings(payload: Any, *, default_postcode: str) -> list[SaleRecord]:
    """Convert a SPARQL JSON result into sale records, in upstream order.

    Bindings without a usable date or price are skipped.

    Raises:
        MalformedUpstreamPayloadError: If the payload is not a SPARQL result set.
    """
    try:
        bindings = payload["results"]["bindings"]
    except (KeyError, TypeError) as e:
        raise MalformedUpstreamPayloadError(
            LandRegistrySource.NAME, "response has no results.bindings"
        ) from e
    if not isinstance(bindings, list):
        raise MalformedUpstreamPayloadError(LandRegistrySource.NAME, "bindings is not a list")

    sales: list[SaleRecord] = []
    for index, binding in enumerate(bindings):
        if not isinstance(binding, dict):
            logger.warning("skipping_malformed_sale_binding", index=index)
            continue
        try:
            sales.append(_binding_to_sale(binding, default_postcode))
        except (ValueError, OverflowError) as e:
            logger.warning("skipping_malformed_sale_binding", index=index, error=str(e))
    return sales


class LandRegistrySource(BaseSource):
    """Sold prices from the Price Paid Data SPARQL endpoint."""

    NAME: Final = "land_registry"

    def __init__(
        self,
        *,
        url: str = LAND_REGISTRY_URL,
        exact_timeout: float = 6.0,
        sector_timeout: float = 8.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(client=client)
        self.url = url
        self.exact_timeout = exact_timeout
        self.sector_timeout = sector_timeout

    @classmethod
    def from_settings(
        cls, settings: Settings, *, client: httpx.AsyncClient | None = None
    ) -> "LandRegistrySource":
        return cls(
            url=settings.land_registry_url,
            exact_timeout=settings.sales_exact_timeout,
            sector_timeout=settings.sales_sector_timeout,
            client=client,
        )

    @property
    def name(self) -> str:
        return self.NAME

    async def fetch(
        self, postcode: NormalizedPostcode, mode: QueryMode
    ) -> FetchResult[SaleRecord]:
        """Fetch sales for a postcode in the given mode. Never raises."""
        timeout = self.exact_timeout if mode is QueryMode.EXACT else self.sector_timeout

        try:
            query = build_sales_query(postcode, mode)
        except ValueError as e:
            logger.warning("unqueryable_postcode", postcode=postcode.full, error=str(e))
            return FetchResult()

        async def call() -> list[SaleRecord]:
            payload = await self._get_json(
                self.url,
                params={"query": query, "output": "json"},
                headers={"Accept": "application/sparql-results+json"},
                timeout=timeout,
            )
            return parse_sale_bindings(payload, default_postcode=postcode.full)

        return await self._run(mode.value, call, timeout=timeout, postcode=postcode.full)

    async def fetch_exact(self, postcode: NormalizedPostcode) -> FetchResult[SaleRecord]:
        return await self.fetch(postcode, QueryMode.EXACT)

    async def fetch_sector(self, postcode: NormalizedPostcode) -> FetchResult[SaleRecord]:
        return await self.fetch(postcode, QueryMode.SECTOR)
