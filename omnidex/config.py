"""
Configuration and environment handling for Omnidex.
"""
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Load environment variables
load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class MarketplaceConfig(BaseModel):
    """Marketplace endpoints. All three live under one base domain."""
    base_url: str = Field(
        default_factory=lambda: os.getenv("OMNIDEX_MARKETPLACE_URL", "https://orbital-market.com").rstrip("/")
    )
    token: Optional[str] = Field(default_factory=lambda: os.getenv("OMNIDEX_MARKETPLACE_TOKEN") or None)

    @property
    def host(self) -> str:
        return self.base_url.split("://", 1)[-1].split("/", 1)[0]

    @property
    def api_base_url(self) -> str:
        return f"{self.base_url}/api/products"

    @property
    def search_url(self) -> str:
        return f"{self.base_url}/search"

    def product_api_url(self, slug: str) -> str:
        return f"{self.api_base_url}/product/{slug}"

    def product_page_url(self, slug: str) -> str:
        return f"{self.base_url}/en-US/product/{slug}"

    def product_url(self, slug: str) -> str:
        """Canonical public URL stored on listings."""
        return f"{self.base_url}/product/{slug}"


class HttpConfig(BaseModel):
    """HTTP client configuration."""
    request_timeout: float = Field(default=30.0, description="Overall request timeout in seconds")
    connect_timeout: float = Field(default=10.0, description="Connect timeout in seconds")
    max_redirects: int = Field(default=10)
    pool_maxsize: int = Field(default=10, description="Idle connections kept per host")
    min_delay_ms: int = Field(default=800, description="Floor for the pre-request delay")
    jitter: float = Field(default=0.2, description="Uniform jitter applied to the base delay (+/-)")
    default_max_attempts: int = Field(default=3)
    slug_api_attempts: int = Field(default=1, description="Attempts per slug on the product API")
    page_attempts: int = Field(default=3)
    search_attempts: int = Field(default=3)


class MatchingConfig(BaseModel):
    """Scoring weights. Tier thresholds are fixed, see models.matching."""
    name_weight: float = 0.6
    category_weight: float = 0.2
    # Keyword overlap between the asset name and the listing description
    description_weight: float = 0.2

    jaro_winkler_weight: float = 0.7
    levenshtein_weight: float = 0.3
    common_prefix_bonus: float = 0.05
    common_prefix_words: int = 2


class MySQLConfig(BaseModel):
    """MySQL database configuration."""
    host: str = Field(default_factory=lambda: os.getenv("MYSQL_HOST", "localhost"))
    port: int = Field(default_factory=lambda: int(os.getenv("MYSQL_PORT", "3306")))
    user: str = Field(default_factory=lambda: os.getenv("MYSQL_USER", "root"))
    password: str = Field(default_factory=lambda: os.getenv("MYSQL_PASSWORD", ""))
    database: str = Field(default_factory=lambda: os.getenv("MYSQL_DATABASE", "omnidex"))


class ScanConfig(BaseModel):
    """Folder scan configuration."""
    recursive: bool = Field(default_factory=lambda: _env_flag("OMNIDEX_SCAN_RECURSIVE"))
    pause_between_assets: float = Field(
        default=0.5,
        description="Seconds to wait between per-asset marketplace lookups",
    )


class Config(BaseModel):
    """Main configuration."""
    marketplace: MarketplaceConfig = Field(default_factory=MarketplaceConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)
    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    mysql: MySQLConfig = Field(default_factory=MySQLConfig)
    scan: ScanConfig = Field(default_factory=ScanConfig)

    # Paths
    selectors_path: Optional[Path] = Field(
        default_factory=lambda: Path(p) if (p := os.getenv("OMNIDEX_SELECTORS_PATH")) else None
    )

    # Logging
    log_level: str = Field(default_factory=lambda: os.getenv("OMNIDEX_LOG_LEVEL", "INFO"))
    json_logs: bool = Field(default_factory=lambda: _env_flag("OMNIDEX_JSON_LOGS"))


# Singleton config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the singleton config instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config
