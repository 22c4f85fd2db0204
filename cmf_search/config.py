from pathlib import Path
from typing import Dict, Literal, Optional

from pydantic import AnyUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables or .env."""

    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).resolve().parent.parent / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # MongoDB connection
    mongo_url: AnyUrl = Field("mongodb://localhost:27017")
    db_name: str = Field("cms")
    collection_name: str = Field("nodes")
    search_index_name: str = Field("default")

    # Mongo connection pool tuning
    mongo_max_pool_size: int = Field(50)
    mongo_server_selection_timeout_ms: int = Field(5000)

    # Paging
    per_page: int = Field(10, ge=1)
    max_per_page: int = Field(100, ge=1)

    # Language scoping
    restrict_by_language: bool = Field(False)
    default_locale: str = Field("en")
    translation_strategy: Optional[Literal["child", "attribute"]] = Field(None)

    # Request parameter names and rendering
    page_parameter_key: str = Field("page")
    query_parameter_key: str = Field("query")
    search_route: str = Field("search")
    translation_domain: str = Field("messages")
    templates_dir: str = Field(str(Path(__file__).resolve().parent / "templates"))

    # Repository scope
    search_path: str = Field("/cms/content")
    search_fields: Dict[str, str] = Field(default_factory=lambda: {"title": "title", "summary": "body"})

    @field_validator("search_fields")
    @classmethod
    def _require_title_and_summary(cls, value: Dict[str, str]) -> Dict[str, str]:
        missing = [key for key in ("title", "summary") if key not in value]
        if missing:
            raise ValueError(f"search_fields is missing required keys: {', '.join(missing)}")
        return value


settings = Settings()
