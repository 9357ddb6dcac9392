from __future__ import annotations

from typing import Literal

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SSOLINK_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
    )

    database_url: str = "sqlite+aiosqlite:///./ssolink.db"

    # For local development
    auto_create_db: bool = False

    # Session cookie auth. In production, override via env.
    session_secret: SecretStr = SecretStr("dev-insecure-change-me")
    session_cookie_name: str = "ssolink_session"

    # Public base URL (no trailing slash) and the path prefix used for
    # in-site redirects when mounted below the root.
    url: str = "http://localhost:4567"
    relative_path: str = ""

    # Discord OAuth2. Admin settings stored in the object store take
    # precedence; these are the environment fallback.
    discord_client_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("SSOLINK_DISCORD_CLIENT_ID", "SSO_DISCORD_CLIENT_ID"),
    )
    discord_client_secret: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "SSOLINK_DISCORD_CLIENT_SECRET", "SSO_DISCORD_CLIENT_SECRET"
        ),
    )
    discord_authorize_url: str = "https://discord.com/api/v8/oauth2/authorize"
    discord_token_url: str = "https://discord.com/api/v8/oauth2/token"
    discord_api_base_url: str = "https://discord.com/api/v8/"

    # Account linking policy
    allow_email_merge: bool = True
    require_verified_email_for_merge: bool = True
    session_attach_policy: Literal["reject", "relink"] = "reject"

    log_level: str = "INFO"
    log_json: bool = False
    log_http_requests: bool = True

    def base_url(self) -> str:
        return self.url.rstrip("/")


def get_settings() -> Settings:
    return Settings()
