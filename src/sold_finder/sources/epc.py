"""Domestic Energy Performance Certificate register source."""

import base64
from dataclasses import dataclass, field
from typing import Any, Final

import httpx

from sold_finder.config import Settings
from sold_finder.errors import MalformedUpstreamPayloadError
from sold_finder.logging import get_logger
from sold_finder.models import CertificateRecord, FetchResult, NormalizedPostcode
from sold_finder.sources.base import BaseSource
from sold_finder.sources.land_registry import encode_postcode_literal

logger = get_logger(__name__)

EPC_SEARCH_URL: Final = "https://epc.opendatacommunities.org/api/v1/domestic/search"


@dataclass(frozen=True)
class EPCCredentials:
    """Username (registered email) and API key for the EPC register."""

    user: str
    key: str = field(repr=False)

    @property
    def authorization(self) -> str:
        """HTTP Basic authorization header value."""
        token = base64.b64encode(f"{self.user}:{self.key}".encode()).decode("ascii")
        return f"Basic {token}"


@dataclass(frozen=True)
class CertificateRequest:
    """A fully-built certificate search, ready to send."""

    url: str
    params: dict[str, str]
    headers: dict[str, str] = field(repr=False)


def build_certificate_request(
    postcode: NormalizedPostcode,
    credentials: EPCCredentials,
    *,
    url: str = EPC_SEARCH_URL,
) -> CertificateRequest:
    """Build the single keyed search for a compact postcode."""
    return CertificateRequest(
        url=url,
        params={"postcode": encode_postcode_literal(postcode.compact)},
        headers={
            "Authorization": credentials.authorization,
            "Accept": "application/json",
        },
    )


def _parse_floor_area(value: Any) -> int | None:
    if value in (None, ""):
        return None
    try:
        area = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return None
    return area if area >= 0 else None


def _row_to_certificate(row: dict[str, Any]) -> CertificateRecord:
    def text(key: str) -> str:
        value = row.get(key)
        return str(value).strip() if value is not None else ""

    return CertificateRecord(
        address_line1=text("address1"),
        address_line2=text("address2"),
        address=text("address"),
        total_floor_area_sqm=_parse_floor_area(row.get("total-floor-area")),
        current_energy_rating=text("current-energy-rating") or None,
        property_type=text("property-type"),
        town_name=text("posttown"),
        postcode=text("postcode"),
    )


def parse_certificate_rows(payload: Any) -> list[CertificateRecord]:
    """Convert an EPC search response into certificate records, in upstream order.

    The register answers a search with no matches with an empty body, which
    arrives here as None.

    Raises:
        MalformedUpstreamPayloadError: If the payload has no usable ``rows`` list.
    """
    if payload is None:
        return []
    if not isinstance(payload, dict):
        raise MalformedUpstreamPayloadError(EPCSource.NAME, "response is not an object")

    rows = payload.get("rows") or []
    if not isinstance(rows, list):
        raise MalformedUpstreamPayloadError(EPCSource.NAME, "rows is not a list")

    certificates: list[CertificateRecord] = []
    for index, row in enumerate(rows):
        if not isinstance(row, dict):
            logger.warning("skipping_malformed_certificate_row", index=index)
            continue
        try:
            certificates.append(_row_to_certificate(row))
        except ValueError as e:
            logger.warning("skipping_malformed_certificate_row", index=index, error=str(e))
    return certificates


class EPCSource(BaseSource):
    """Floor areas and energy ratings from the EPC register.

    Without credentials the source is disabled: every fetch returns an empty
    result without touching the network.
    """

    NAME: Final = "epc"

    def __init__(
        self,
        credentials: EPCCredentials | None,
        *,
        url: str = EPC_SEARCH_URL,
        timeout: float = 3.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(client=client)
        self.credentials = credentials
        self.url = url
        self.timeout = timeout

    @classmethod
    def from_settings(
        cls, settings: Settings, *, client: httpx.AsyncClient | None = None
    ) -> "EPCSource":
        credentials = (
            EPCCredentials(user=settings.epc_user, key=settings.epc_key.get_secret_value())
            if settings.has_epc_credentials
            else None
        )
        return cls(credentials, url=settings.epc_url, timeout=settings.epc_timeout, client=client)

    @property
    def name(self) -> str:
        return self.NAME

    @property
    def enabled(self) -> bool:
        return self.credentials is not None

    async def fetch(self, postcode: NormalizedPostcode) -> FetchResult[CertificateRecord]:
        """Fetch certificates for a postcode. Never raises."""
        if self.credentials is None:
            logger.info("skipping_epc_fetch", reason="no_credentials", postcode=postcode.full)
            return FetchResult()

        try:
            request = build_certificate_request(postcode, self.credentials, url=self.url)
        except ValueError as e:
            logger.warning("unqueryable_postcode", postcode=postcode.full, error=str(e))
            return FetchResult()

        async def call() -> list[CertificateRecord]:
            payload = await self._get_json(
                request.url,
                params=request.params,
                headers=request.headers,
                timeout=self.timeout,
            )
            return parse_certificate_rows(payload)

        return await self._run("search", call, timeout=self.timeout, postcode=postcode.full)
