from functools import lru_cache
from typing import Any, Optional

from pydantic import AliasChoices, Field, SecretStr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.errors import ConfigurationError


class Settings(BaseSettings):
    algolia_app_id: Optional[str] = None
    algolia_api_key: Optional[SecretStr] = None
    docs_index_name: Optional[str] = None

    # Skip a page that fails to index instead of aborting the whole run.
    # The misspelt name is what older workflows export.
    algolia_skip_on_error: bool = Field(
        default=False,
        validation_alias=AliasChoices(
            "algolia_skip_on_error",
            "ALGOLIA_SKIP_ON_ERROR",
            "ALOGOLIA_SKIP_ON_ERROR",
        ),
    )

    # Where Next.js writes the pre-rendered app directory pages.
    # The layout is undocumented and may change between Next.js releases.
    static_html_path: str = ".next/server/app"

    content_dir: str = "docs"
    develop_docs_dir: str = "develop-docs"
    developer_docs: bool = False

    root_selector: str = "#main"
    max_record_text_length: int = 8000

    save_batch_size: int = 10000
    delete_batch_size: int = 1000
    browse_page_size: int = 1000
    request_timeout: float = 30.0

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def front_matter_dir(self) -> str:
        return self.develop_docs_dir if self.developer_docs else self.content_dir

    def validate_required(self) -> None:
        """Fail before any work starts if the index credentials are missing."""
        required = (
            ("ALGOLIA_APP_ID", self.algolia_app_id),
            ("ALGOLIA_API_KEY", self.algolia_api_key),
            ("DOCS_INDEX_NAME", self.docs_index_name),
        )
        for env_name, value in required:
            if isinstance(value, SecretStr):
                value = value.get_secret_value()
            if not value:
                raise ConfigurationError(
                    f"`{env_name}` env var must be configured in repo secrets"
                )


def load_settings(**overrides: Any) -> Settings:
    """
    Build settings from the environment, reporting bad values as configuration
    errors instead of raw validation failures.
    """
    try:
        return Settings(**overrides)
    except ValidationError as exc:
        fields = ", ".join(
            ".".join(str(part) for part in err["loc"]) or "settings"
            for err in exc.errors()
        )
        raise ConfigurationError(f"Invalid configuration for: {fields}") from exc


@lru_cache
def get_settings() -> Settings:
    return load_settings()
