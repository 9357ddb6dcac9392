from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx
import pytest

from ssolink.errors import NotConfigured, ProfileFetchError
from ssolink.repos.plugin_settings import PluginSettingsRepository
from ssolink.settings import Settings
from ssolink.sso.discord.provider import (
    PLUGIN_ID,
    build_login_strategy,
    fetch_profile_body,
    get_discord_config,
    load_discord_config,
    require_discord_config,
)
from ssolink.store import MemoryObjectStore


def test_admin_settings_take_precedence_over_environment() -> None:
    settings = Settings(
        url="https://forum.example.test/",
        discord_client_id="env-id",
        discord_client_secret="env-secret",
    )

    cfg = get_discord_config(settings, {"id": "admin-id", "secret": "admin-secret"})

    assert cfg is not None
    assert cfg.client_id == "admin-id"
    assert cfg.client_secret == "admin-secret"
    assert cfg.callback_url == "https://forum.example.test/auth/discord/callback"


def test_environment_fallback_accepts_legacy_variable_names(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("SSO_DISCORD_CLIENT_ID", "legacy-id")
    monkeypatch.setenv("SSO_DISCORD_CLIENT_SECRET", "legacy-secret")

    cfg = get_discord_config(Settings(), {})

    assert cfg is not None
    assert cfg.client_id == "legacy-id"
    assert cfg.client_secret == "legacy-secret"


def test_missing_secret_disables_provider() -> None:
    settings = Settings(discord_client_id="id-only", discord_client_secret=None)

    assert get_discord_config(settings, {}) is None
    assert build_login_strategy(None) is None
    with pytest.raises(NotConfigured):
        require_discord_config(None)


async def test_load_discord_config_logs_when_unconfigured(
    caplog: pytest.LogCaptureFixture,
) -> None:
    caplog.set_level(logging.WARNING, logger="ssolink.sso.discord")

    cfg = await load_discord_config(
        MemoryObjectStore(), Settings(discord_client_id=None, discord_client_secret=None)
    )

    assert cfg is None
    assert any("Not enabling authentication strategy" in r.getMessage() for r in caplog.records)


async def test_load_discord_config_reads_admin_settings_hash() -> None:
    store = MemoryObjectStore()
    await PluginSettingsRepository(store, PLUGIN_ID).update({"id": "stored", "secret": "s3"})

    cfg = await load_discord_config(
        store, Settings(discord_client_id=None, discord_client_secret=None)
    )

    assert cfg is not None
    assert cfg.client_id == "stored"


def test_login_strategy_describes_discord_button() -> None:
    cfg = get_discord_config(Settings(discord_client_id="a", discord_client_secret="b"), {})

    strategy = build_login_strategy(cfg)

    assert strategy is not None
    data = strategy.as_dict()
    assert data["name"] == "discord"
    assert data["url"] == "/auth/discord"
    assert data["callback_url"] == "/auth/discord/callback"
    assert data["scope"] == ["identify", "email"]
    assert data["button"]["background_color"] == "#7289DA"


@dataclass
class _FakeApiClient:
    response: httpx.Response

    async def get(self, url: str, token: object = None) -> httpx.Response:
        return self.response


async def test_fetch_profile_body_returns_raw_content() -> None:
    request = httpx.Request("GET", "https://discord.com/api/v8/users/@me")
    client = _FakeApiClient(httpx.Response(200, content=b'{"id": "1"}', request=request))

    assert await fetch_profile_body(client, {"access_token": "t"}) == b'{"id": "1"}'


async def test_fetch_profile_body_wraps_http_errors() -> None:
    request = httpx.Request("GET", "https://discord.com/api/v8/users/@me")
    client = _FakeApiClient(httpx.Response(401, content=b"{}", request=request))

    with pytest.raises(ProfileFetchError):
        await fetch_profile_body(client, {"access_token": "t"})
