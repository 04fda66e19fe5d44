"""Join sales against energy certificates.

The two registries share no key. A certificate is attached to a sale when
one of its address lines contains the sale's building number (PAON). This
is a loose heuristic: "1" also matches "10 High Street", and an empty
building number matches the first certificate. At most one certificate is
attached per sale, and the same certificate may enrich several sales.
"""

from collections.abc import Sequence

from sold_finder.logging import get_logger
from sold_finder.models import CertificateRecord, Match, SaleRecord

logger = get_logger(__name__)


def address_contains(certificate: CertificateRecord, building_number: str) -> bool:
    """Case-sensitive substring test against either address line."""
    return (
        building_number in certificate.address_line1
        or building_number in certificate.address_line2
    )


def find_certificate(
    sale: SaleRecord, certificates: Sequence[CertificateRecord]
) -> CertificateRecord | None:
    """First certificate, in upstream order, whose address holds the sale's building number."""
    return next(
        (c for c in certificates if address_contains(c, sale.building_number)),
        None,
    )


def reconcile(
    sales: Sequence[SaleRecord], certificates: Sequence[CertificateRecord]
) -> list[Match]:
    """Pair each sale with at most one certificate.

    When there are no sales, every certificate stands alone so the caller
    still gets floor areas for the postcode. Sales and standalone
    certificates are never mixed.
    """
    if not sales:
        if certificates:
            logger.info("no_sales_using_certificates", certificates=len(certificates))
        return [Match(sale=None, certificate=c) for c in certificates]

    matches = [Match(sale=s, certificate=find_certificate(s, certificates)) for s in sales]

    logger.info(
        "reconciled_records",
        sales=len(sales),
        certificates=len(certificates),
        enriched=sum(1 for m in matches if m.certificate is not None),
    )
    return matches
