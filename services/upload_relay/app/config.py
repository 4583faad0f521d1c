"""Upload Relay configuration via environment variables."""

import tempfile
from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Upload Relay configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="RELAY_",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",  # Ignore extra env vars not defined in this model
    )

    # Service settings
    service_name: str = "upload-relay"
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"
    log_json: bool = True

    # Routing
    upload_path: str = "/upload-image"
    api_base_path: str = "/"  # Stripped by the serverless adapter, e.g. /.netlify/functions

    # Which remote file store receives uploads
    backend: Literal["shopify", "cloudinary"] = "shopify"

    # Shopify Admin API (token needs write_files)
    shopify_store: str = Field(
        default="",
        validation_alias=AliasChoices("RELAY_SHOPIFY_STORE", "SHOPIFY_STORE"),
        description="Store domain, e.g. your-store.myshopify.com",
    )
    shopify_admin_token: str = Field(
        default="",
        validation_alias=AliasChoices("RELAY_SHOPIFY_ADMIN_TOKEN", "SHOPIFY_ADMIN_TOKEN"),
    )
    shopify_api_version: str = "2024-07"

    # Cloudinary unsigned uploads
    cloudinary_cloud_name: str = Field(
        default="",
        validation_alias=AliasChoices("RELAY_CLOUDINARY_CLOUD_NAME", "CLOUDINARY_CLOUD_NAME"),
    )
    cloudinary_upload_preset: str = Field(
        default="",
        validation_alias=AliasChoices(
            "RELAY_CLOUDINARY_UPLOAD_PRESET", "CLOUDINARY_UPLOAD_PRESET"
        ),
    )
    cloudinary_api_url: str = "https://api.cloudinary.com/v1_1"

    # Outbound HTTP
    request_timeout_seconds: float = 60.0

    # Scratch files live here for the duration of one request
    scratch_dir: str = Field(default_factory=tempfile.gettempdir)

    # CORS headers sent on every response
    cors_allow_origin: str = "*"
    cors_allow_methods: str = "POST, OPTIONS"
    cors_allow_headers: str = "Content-Type, Authorization"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
