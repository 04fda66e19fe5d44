"""Pydantic models for postcodes, upstream records and search results."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Final, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from sold_finder.errors import SourceError

DEFAULT_AREA_SQM: Final = 90
NO_ENERGY_RATING: Final = "N/A"
UNKNOWN_ADDRESS: Final = "Unknown Address"


class QueryMode(str, Enum):
    """How the sales registry is asked for a postcode."""

    EXACT = "exact"
    SECTOR = "sector"


class NormalizedPostcode(BaseModel):
    """A postcode in the three forms the pipeline needs."""

    model_config = ConfigDict(frozen=True)

    full: str = Field(description="Uppercase, single-spaced, trimmed")
    sector: str = Field(description="Compact prefix used to broaden a sales search")
    compact: str = Field(description="Spaces stripped; the only form sent upstream")


class SaleRecord(BaseModel):
    """One Price Paid transaction."""

    model_config = ConfigDict(frozen=True)

    date: str
    price: int = Field(ge=0, description="Price paid in GBP")
    building_number: str = ""
    sub_building: str = ""
    street: str = ""
    property_type_label: str = ""
    source_postcode: str = ""


class CertificateRecord(BaseModel):
    """One domestic energy performance certificate."""

    model_config = ConfigDict(frozen=True)

    address_line1: str = ""
    address_line2: str = ""
    address: str = ""
    total_floor_area_sqm: int | None = Field(default=None, ge=0)
    current_energy_rating: str | None = None
    property_type: str = ""
    town_name: str = ""
    postcode: str = ""

    @field_validator("current_energy_rating")
    @classmethod
    def normalize_rating(cls, v: str | None) -> str | None:
        """Ratings are single uppercase letters; blank means absent."""
        if v is None:
            return None
        v = v.strip().upper()
        return v or None


class UnifiedProperty(BaseModel):
    """A sold property as returned to callers (camelCase on the wire)."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str
    address: str
    city: str
    postcode: str
    property_type: str
    last_sold_price: int = Field(default=0, ge=0)
    last_sold_date: str | None = None
    area_sqm: int = DEFAULT_AREA_SQM
    energy_rating: str = NO_ENERGY_RATING


RecordT = TypeVar("RecordT", SaleRecord, CertificateRecord)


@dataclass
class FetchResult(Generic[RecordT]):
    """Outcome of one upstream fetch: records, or none plus the cause."""

    records: list[RecordT] = field(default_factory=list)
    error: SourceError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class Match:
    """A sale with its matched certificate, or a certificate standing alone."""

    sale: SaleRecord | None
    certificate: CertificateRecord | None

    def __post_init__(self) -> None:
        if self.sale is None and self.certificate is None:
            raise ValueError("A match needs a sale, a certificate, or both")
