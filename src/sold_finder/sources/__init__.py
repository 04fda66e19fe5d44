"""Upstream record sources."""

from sold_finder.sources.base import BaseSource
from sold_finder.sources.epc import (
    CertificateRequest,
    EPCCredentials,
    EPCSource,
    build_certificate_request,
)
from sold_finder.sources.land_registry import (
    LandRegistrySource,
    build_sales_query,
    encode_postcode_literal,
)

__all__ = [
    "BaseSource",
    "build_certificate_request",
    "build_sales_query",
    "CertificateRequest",
    "encode_postcode_literal",
    "EPCCredentials",
    "EPCSource",
    "LandRegistrySource",
]
