"""Store configuration.

``StoreConfig`` is built once and is read-only afterwards. ``Settings`` reads
the same knobs from the environment (``DYNASTORE_*``) for deployments that
configure through env vars.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, SecretStr, model_validator
from pydantic_settings import BaseSettings

DEFAULT_TABLE_NAME = "sessions"
DEFAULT_PRIMARY_KEY = "id"
DEFAULT_TTL_FIELD = "ttl"
DEFAULT_MAX_AGE = 30 * 24 * 3600  # 30 days


class CookieOptions(BaseModel):
    """Cookie attributes. Each session gets its own copy of the defaults.

    ``max_age`` 0 means a browser-session cookie; negative deletes the session.
    """

    path: str | None = "/"
    domain: str | None = None
    max_age: int = DEFAULT_MAX_AGE
    secure: bool = False
    http_only: bool = True
    same_site: Literal["lax", "strict", "none"] | None = "lax"

    model_config = {"validate_assignment": True}


class StoreConfig(BaseModel):
    table_name: str = DEFAULT_TABLE_NAME
    primary_key: str = DEFAULT_PRIMARY_KEY
    ttl_field: str = DEFAULT_TTL_FIELD
    enable_ttl: bool = False
    ttl_seconds: int | None = None  # falls back to cookie_options.max_age
    refresh_cookies: bool = False
    cookie_options: CookieOptions = Field(default_factory=CookieOptions)
    secret_key: SecretStr | None = None  # signs cookie values when set
    strict_load: bool = False
    consistent_read: bool = False
    operation_timeout: float | None = None
    region_name: str = "us-west-2"
    endpoint_url: str | None = None  # For DynamoDB Local

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_ttl_lifetime(self) -> StoreConfig:
        if self.enable_ttl and self.effective_ttl_seconds <= 0:
            raise ValueError(
                "enable_ttl needs a positive ttl_seconds (or cookie max_age); "
                "records would expire as soon as they are written"
            )
        return self

    @property
    def effective_ttl_seconds(self) -> int:
        if self.ttl_seconds is not None:
            return self.ttl_seconds
        return self.cookie_options.max_age


class Settings(BaseSettings):
    table_name: str = DEFAULT_TABLE_NAME
    primary_key: str = DEFAULT_PRIMARY_KEY
    ttl_field: str = DEFAULT_TTL_FIELD
    enable_ttl: bool = False
    ttl_seconds: int | None = None
    refresh_cookies: bool = False
    secret_key: str = ""
    strict_load: bool = False
    consistent_read: bool = False
    operation_timeout: float | None = None
    region_name: str = "us-west-2"
    endpoint_url: str = ""
    cookie_path: str = "/"
    cookie_domain: str = ""
    cookie_max_age: int = DEFAULT_MAX_AGE
    cookie_secure: bool = False
    cookie_http_only: bool = True
    cookie_same_site: Literal["lax", "strict", "none"] = "lax"

    model_config = {"env_prefix": "DYNASTORE_", "case_sensitive": False}

    def to_store_config(self) -> StoreConfig:
        return StoreConfig(
            table_name=self.table_name,
            primary_key=self.primary_key,
            ttl_field=self.ttl_field,
            enable_ttl=self.enable_ttl,
            ttl_seconds=self.ttl_seconds,
            refresh_cookies=self.refresh_cookies,
            cookie_options=CookieOptions(
                path=self.cookie_path,
                domain=self.cookie_domain or None,
                max_age=self.cookie_max_age,
                secure=self.cookie_secure,
                http_only=self.cookie_http_only,
                same_site=self.cookie_same_site,
            ),
            secret_key=self.secret_key or None,
            strict_load=self.strict_load,
            consistent_read=self.consistent_read,
            operation_timeout=self.operation_timeout,
            region_name=self.region_name,
            endpoint_url=self.endpoint_url or None,
        )


settings: Settings | None = None


def get_settings() -> Settings:
    global settings
    if settings is None:
        settings = Settings()
    return settings


def override_settings(s: Settings) -> None:
    """For testing: inject a Settings instance."""
    global settings
    settings = s
