"""Shape reconciled matches into the records returned to callers."""

import time
from collections.abc import Sequence

from sold_finder.models import (
    DEFAULT_AREA_SQM,
    NO_ENERGY_RATING,
    UNKNOWN_ADDRESS,
    CertificateRecord,
    Match,
    NormalizedPostcode,
    SaleRecord,
    UnifiedProperty,
)
from sold_finder.utils.postcode import format_postcode


def join_address(*parts: str) -> str:
    """Join the non-empty parts with single spaces, or the unknown placeholder."""
    joined = " ".join(p.strip() for p in parts if p and p.strip())
    return joined or UNKNOWN_ADDRESS


def _city(certificate: CertificateRecord | None, default_city: str) -> str:
    if certificate is not None and certificate.town_name:
        return certificate.town_name.title()
    return default_city


def _enrichment(certificate: CertificateRecord | None) -> tuple[int, str]:
    if certificate is None:
        return DEFAULT_AREA_SQM, NO_ENERGY_RATING
    area = (
        certificate.total_floor_area_sqm
        if certificate.total_floor_area_sqm is not None
        else DEFAULT_AREA_SQM
    )
    return area, certificate.current_energy_rating or NO_ENERGY_RATING


def _from_sale(
    property_id: str,
    sale: SaleRecord,
    certificate: CertificateRecord | None,
    postcode: NormalizedPostcode,
    default_city: str,
) -> UnifiedProperty:
    area, rating = _enrichment(certificate)
    return UnifiedProperty(
        id=property_id,
        address=join_address(sale.sub_building, sale.building_number, sale.street),
        city=_city(certificate, default_city),
        postcode=format_postcode(sale.source_postcode) if sale.source_postcode else postcode.full,
        property_type=sale.property_type_label,
        last_sold_price=sale.price,
        last_sold_date=sale.date or None,
        area_sqm=area,
        energy_rating=rating,
    )


def _from_certificate(
    property_id: str,
    certificate: CertificateRecord,
    postcode: NormalizedPostcode,
    default_city: str,
) -> UnifiedProperty:
    area, rating = _enrichment(certificate)
    address = certificate.address or join_address(
        certificate.address_line1, certificate.address_line2
    )
    return UnifiedProperty(
        id=property_id,
        address=address,
        city=_city(certificate, default_city),
        postcode=format_postcode(certificate.postcode) if certificate.postcode else postcode.full,
        property_type=certificate.property_type,
        last_sold_price=0,
        last_sold_date=None,
        area_sqm=area,
        energy_rating=rating,
    )


def assemble_results(
    matches: Sequence[Match],
    postcode: NormalizedPostcode,
    *,
    default_city: str = "London",
) -> list[UnifiedProperty]:
    """Build one UnifiedProperty per match, preserving order.

    Ids are ``prop_<index>_<epoch millis>``: unique within a response but
    different on every call.
    """
    stamp = time.time_ns() // 1_000_000
    results: list[UnifiedProperty] = []
    for index, match in enumerate(matches):
        property_id = f"prop_{index}_{stamp}"
        if match.sale is not None:
            results.append(
                _from_sale(property_id, match.sale, match.certificate, postcode, default_city)
            )
        else:
            assert match.certificate is not None
            results.append(
                _from_certificate(property_id, match.certificate, postcode, default_city)
            )
    return results
