"""Shared pytest fixtures."""

import os
import sys
from collections.abc import Callable
from typing import Any

import pytest
from hypothesis import HealthCheck, settings

from sold_finder.config import Settings
from sold_finder.models import CertificateRecord, NormalizedPostcode, SaleRecord


def pytest_configure(config: pytest.Config) -> None:
    """Force line-buffered stdout when piped."""
    if hasattr(sys.stdout, "reconfigure") and not sys.stdout.isatty():
        sys.stdout.reconfigure(line_buffering=True)
    if hasattr(sys.stderr, "reconfigure") and not sys.stderr.isatty():
        sys.stderr.reconfigure(line_buffering=True)


# Hypothesis settings profiles for different environments
settings.register_profile("fast", max_examples=25)
settings.register_profile(
    "ci",
    max_examples=200,
    suppress_health_check=[HealthCheck.too_slow],
)
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "fast"))


@pytest.fixture(autouse=True)
def _isolate_settings_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the local .env file and SOLD_FINDER_* variables out of test Settings."""
    monkeypatch.setattr(
        Settings,
        "model_config",
        {**Settings.model_config, "env_file": None},
    )
    for name in list(os.environ):
        if name.startswith("SOLD_FINDER_"):
            monkeypatch.delenv(name)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(epc_user="someone@example.com", epc_key="secret-key")


@pytest.fixture
def sw1a() -> NormalizedPostcode:
    return NormalizedPostcode(full="SW1A 1AA", sector="SW1A1", compact="SW1A1AA")


@pytest.fixture
def make_binding() -> Callable[..., dict[str, Any]]:
    """Factory for one SPARQL JSON binding row from the Price Paid endpoint."""

    def _make(
        *,
        date: str = "2023-06-30",
        price: str = "450000",
        paon: str | None = "10",
        saon: str | None = None,
        street: str | None = "DOWNING STREET",
        type_label: str = "Terraced",
        postcode: str | None = None,
    ) -> dict[str, Any]:
        row: dict[str, Any] = {
            "date": {"type": "literal", "datatype": "xsd:date", "value": date},
            "price": {"type": "literal", "datatype": "xsd:integer", "value": price},
            "type": {"type": "literal", "value": type_label},
        }
        optional = {"paon": paon, "saon": saon, "street": street, "postcode": postcode}
        for key, value in optional.items():
            if value is not None:
                row[key] = {"type": "literal", "value": value}
        return row

    return _make


@pytest.fixture
def make_row() -> Callable[..., dict[str, Any]]:
    """Factory for one row of an EPC domestic search response."""

    def _make(
        *,
        address1: str = "10 Downing Street",
        address2: str = "",
        total_floor_area: str = "120",
        rating: str = "C",
        property_type: str = "House",
        posttown: str = "LONDON",
        postcode: str = "SW1A 1AA",
    ) -> dict[str, Any]:
        address = ", ".join(p for p in (address1, address2) if p)
        return {
            "address1": address1,
            "address2": address2,
            "address": address,
            "total-floor-area": total_floor_area,
            "current-energy-rating": rating,
            "property-type": property_type,
            "posttown": posttown,
            "postcode": postcode,
        }

    return _make


@pytest.fixture
def sample_sale() -> SaleRecord:
    return SaleRecord(
        date="2023-06-30",
        price=450000,
        building_number="10",
        street="DOWNING STREET",
        property_type_label="Terraced",
        source_postcode="SW1A 1AA",
    )


@pytest.fixture
def sample_certificate() -> CertificateRecord:
    return CertificateRecord(
        address_line1="10 Downing Street",
        address="10 Downing Street",
        total_floor_area_sqm=120,
        current_energy_rating="C",
        property_type="House",
        town_name="LONDON",
        postcode="SW1A 1AA",
    )
