"""Application configuration using pydantic-settings."""

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SOLD_FINDER_",
        extra="ignore",
    )

    # EPC register credentials (optional; certificate enrichment is skipped without them)
    epc_user: str = Field(
        default="",
        description="Email address registered with the EPC open data service",
    )
    epc_key: SecretStr = Field(
        default=SecretStr(""),
        description="API key issued by the EPC open data service",
    )

    # Upstream endpoints
    land_registry_url: str = Field(
        default="https://landregistry.data.gov.uk/landregistry/query",
        description="Price Paid Data SPARQL endpoint",
    )
    epc_url: str = Field(
        default="https://epc.opendatacommunities.org/api/v1/domestic/search",
        description="Domestic EPC search endpoint",
    )

    # Per-fetch time budgets in seconds
    sales_exact_timeout: float = Field(default=6.0, gt=0, le=60)
    sales_sector_timeout: float = Field(default=8.0, gt=0, le=60)
    epc_timeout: float = Field(default=3.0, gt=0, le=60)

    # Result shaping
    default_city: str = Field(
        default="London",
        description="City reported when no certificate supplies a post town",
    )

    # Web server
    web_host: str = Field(default="0.0.0.0", description="Web server host")
    web_port: int = Field(default=3000, description="Web server port")
    log_json: bool = Field(default=False, description="Emit JSON logs instead of console output")

    @property
    def has_epc_credentials(self) -> bool:
        """Whether both halves of the EPC credential pair are configured."""
        return bool(self.epc_user and self.epc_key.get_secret_value())
