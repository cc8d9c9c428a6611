"""Configuration for talking to the remote content store.

Applications can build a ``ContentStoreSettings`` instance at startup and pass
it to ``configure`` to override the environment defaults; ``get_store_client``
picks up the replacement on its next call.
"""

from __future__ import annotations

import os
from typing import Optional

from dotenv import find_dotenv, load_dotenv
from loguru import logger
from pydantic import BaseModel, Field

# Search for the nearest .env so running from subdirectories still loads root config.
load_dotenv(find_dotenv(usecwd=True))


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class ContentStoreSettings(BaseModel):
    """Project, dataset and transport options for the content store API."""

    project_id: str = Field(default_factory=lambda: os.getenv("CONTENT_STORE_PROJECT_ID", ""))
    dataset: str = Field(default_factory=lambda: os.getenv("CONTENT_STORE_DATASET", "production"))
    api_version: str = Field(
        default_factory=lambda: os.getenv("CONTENT_STORE_API_VERSION", "2021-10-21")
    )
    api_host: str = Field(default_factory=lambda: os.getenv("CONTENT_STORE_API_HOST", "api.sanity.io"))
    cdn_host: str = Field(
        default_factory=lambda: os.getenv("CONTENT_STORE_CDN_HOST", "apicdn.sanity.io")
    )
    token: Optional[str] = Field(default_factory=lambda: os.getenv("CONTENT_STORE_TOKEN") or None)
    use_cdn: bool = Field(default_factory=lambda: _env_flag("CONTENT_STORE_USE_CDN"))
    timeout_seconds: float = Field(
        default_factory=lambda: float(os.getenv("CONTENT_STORE_TIMEOUT_SECONDS", "10.0"))
    )

    def api_url(self, *, cdn: bool = False) -> str:
        """Versioned base URL, e.g. ``https://abc123.api.sanity.io/v2021-10-21``."""

        host = self.cdn_host if cdn else self.api_host
        version = self.api_version.lstrip("v")
        return f"https://{self.project_id}.{host}/v{version}"


def _default_settings() -> ContentStoreSettings:
    return ContentStoreSettings()


settings: ContentStoreSettings = _default_settings()
logger.info(
    "ContentStoreSettings initialized with project_id={project_id} dataset={dataset} api_version={api_version}",
    project_id=settings.project_id or "<unset>",
    dataset=settings.dataset,
    api_version=settings.api_version,
)


def get_settings() -> ContentStoreSettings:
    """Return the active settings."""

    return settings


def configure(new_settings: ContentStoreSettings) -> ContentStoreSettings:
    """Replace the active settings; clients created afterwards pick them up."""

    global settings
    settings = new_settings
    return settings
