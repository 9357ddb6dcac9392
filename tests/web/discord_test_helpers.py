from __future__ import annotations

import json
from dataclasses import dataclass, field

import httpx
import pytest
from authlib.integrations.starlette_client import OAuthError
from fastapi.responses import RedirectResponse

from ssolink.web.routes import auth as auth_routes


def discord_user_body(
    user_id: str = "80351110224678912",
    *,
    username: str = "Nelly",
    email: str | None = "nelly@discord.com",
    verified: bool = True,
    avatar: str | None = "8342729096ea3675442027381ff50dfe",
) -> bytes:
    return json.dumps(
        {
            "id": user_id,
            "username": username,
            "email": email,
            "verified": verified,
            "avatar": avatar,
        }
    ).encode()


@dataclass
class FakeDiscordClient:
    profile_body: bytes = field(default_factory=discord_user_body)
    token_error: str | None = None
    profile_status: int = 200

    async def authorize_redirect(
        self,
        request: object,
        redirect_uri: str,
        **kwargs: object,
    ) -> RedirectResponse:
        return RedirectResponse(url="https://discord.example.test/authorize", status_code=302)

    async def authorize_access_token(self, request: object) -> dict[str, str]:
        if self.token_error is not None:
            raise OAuthError(error=self.token_error)
        return {"access_token": "test-token", "token_type": "Bearer"}

    async def get(self, url: str, token: object = None, **kwargs: object) -> httpx.Response:
        return httpx.Response(
            self.profile_status,
            content=self.profile_body,
            request=httpx.Request("GET", f"https://discord.com/api/v8/{url}"),
        )


def enable_discord(monkeypatch: pytest.MonkeyPatch, fake: FakeDiscordClient) -> None:
    monkeypatch.setenv("SSOLINK_DISCORD_CLIENT_ID", "test-client")
    monkeypatch.setenv("SSOLINK_DISCORD_CLIENT_SECRET", "test-secret")
    monkeypatch.setattr(auth_routes, "discord_oauth_client", lambda cfg: fake)


async def login_with_discord(client: httpx.AsyncClient) -> httpx.Response:
    return await client.get("/auth/discord/callback", follow_redirects=False)
