"""
Configuration and environment handling for Hunta.
"""
import os
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Load environment variables
load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_choice(name: str, choices: tuple[str, ...]) -> str:
    value = os.getenv(name, "").strip().lower()
    return value if value in choices else choices[0]


class OpenAIConfig(BaseModel):
    """OpenAI API configuration for query enhancement."""
    api_key: str = Field(default_factory=lambda: os.getenv("OPENAI_API_KEY", "").strip())
    model: str = Field(default_factory=lambda: os.getenv("LLM_MODEL", "gpt-4o-mini"))
    max_tokens: int = Field(default=600)
    temperature: float = Field(default=0.2)
    timeout_seconds: float = Field(default=20.0)


class ScrapingBeeConfig(BaseModel):
    """ScrapingBee proxy configuration used by the marketplace sources."""
    api_key: str = Field(default_factory=lambda: os.getenv("SCRAPINGBEE_API_KEY", "").strip())
    base_url: str = Field(default="https://app.scrapingbee.com/api/v1/")
    country_code: str = Field(default="gb")
    request_timeout_seconds: float = Field(default=45.0)
    max_items_per_page: int = Field(default=15, description="Listings kept per fetched page")
    max_retries: int = Field(default=3)


class SearchConfig(BaseModel):
    """Search pipeline configuration."""
    max_terms: int = Field(default=5, description="Search terms fanned out per query")
    result_limit: int = Field(default=40, description="Final ranked results returned")
    default_currency: str = Field(default="GBP")
    default_location: str = Field(default="UK")
    default_max_pages: int = Field(default=1)
    source_timeout_seconds: float = Field(
        default_factory=lambda: float(os.getenv("HUNTA_SOURCE_TIMEOUT_SECONDS", "45")),
        description="Upper bound for a single (term, source) call",
    )


class Config(BaseModel):
    """Main configuration."""
    openai: OpenAIConfig = Field(default_factory=OpenAIConfig)
    scrapingbee: ScrapingBeeConfig = Field(default_factory=ScrapingBeeConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)

    # "auto" uses mock sources only when ScrapingBee is not configured
    use_mock_sources: Literal["auto", "always", "never"] = Field(
        default_factory=lambda: _env_choice("HUNTA_USE_MOCK_SOURCES", ("auto", "always", "never"))
    )

    # Logging
    log_level: str = Field(default_factory=lambda: os.getenv("HUNTA_LOG_LEVEL", "INFO").upper())
    log_json: bool = Field(default_factory=lambda: _env_flag("HUNTA_LOG_JSON"))

    @property
    def mock_sources_enabled(self) -> bool:
        if self.use_mock_sources == "always":
            return True
        if self.use_mock_sources == "never":
            return False
        return not self.scrapingbee.api_key


# Singleton config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the singleton config instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config() -> None:
    """Drop the cached config so the next get_config() re-reads the environment."""
    global _config
    _config = None
