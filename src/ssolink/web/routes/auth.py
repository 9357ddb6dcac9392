from __future__ import annotations

import logging
from typing import Any, cast

from authlib.integrations.starlette_client import OAuthError
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import RedirectResponse
from starlette.responses import Response

from ssolink.auth import clear_current_uid, get_current_uid, get_object_store, set_current_uid
from ssolink.errors import NotConfigured, SsoLinkError, StoreError
from ssolink.logging_config import log_with_fields
from ssolink.security.audit import (
    audit_discord_denied,
    audit_discord_success,
    audit_session_success,
)
from ssolink.services.discord_identity import build_identity_resolver
from ssolink.services.identity_resolution import ResolutionOutcome
from ssolink.settings import get_settings
from ssolink.sso.discord.profile import normalize_profile
from ssolink.sso.discord.provider import (
    CALLBACK_PATH,
    LOGIN_PATH,
    PROVIDER_NAME,
    DiscordConfig,
    build_login_strategy,
    build_oauth,
    fetch_profile_body,
    load_discord_config,
    require_discord_config,
)
from ssolink.store.sql import SqlObjectStore

router = APIRouter()
logger = logging.getLogger("uvicorn.error")


def discord_oauth_client(cfg: DiscordConfig) -> Any:
    return build_oauth(cfg).create_client(PROVIDER_NAME)


def _redirect(path: str) -> RedirectResponse:
    return RedirectResponse(url=f"{get_settings().relative_path}{path}", status_code=303)


def _login_failure(reason: str) -> RedirectResponse:
    return _redirect(f"/login?error={reason}")


async def _require_config(store: SqlObjectStore) -> DiscordConfig:
    try:
        return require_discord_config(await load_discord_config(store, get_settings()))
    except NotConfigured as exc:
        audit_discord_denied(event="callback", reason=exc.reason)
        raise HTTPException(status_code=404) from exc


@router.get("/auth/strategies")
async def list_strategies(
    store: SqlObjectStore = Depends(get_object_store),
) -> dict[str, list[dict[str, Any]]]:
    strategy = build_login_strategy(await load_discord_config(store, get_settings()))
    return {"strategies": [strategy.as_dict()] if strategy is not None else []}


@router.get(LOGIN_PATH, response_class=RedirectResponse)
async def discord_start(
    request: Request,
    store: SqlObjectStore = Depends(get_object_store),
) -> Response:
    cfg = await _require_config(store)
    client = discord_oauth_client(cfg)
    return cast(Response, await client.authorize_redirect(request, cfg.callback_url))


@router.get(CALLBACK_PATH, name="discord_callback")
async def discord_callback(
    request: Request,
    store: SqlObjectStore = Depends(get_object_store),
) -> Response:
    settings = get_settings()
    cfg = await _require_config(store)
    client = discord_oauth_client(cfg)
    session_uid = get_current_uid(request)

    try:
        token = await client.authorize_access_token(request)
    except OAuthError as exc:
        audit_discord_denied(
            event="callback",
            reason="oauth_error",
            actor_uid=session_uid,
            error=exc.error,
        )
        return _login_failure("oauth_error")

    try:
        profile = normalize_profile(await fetch_profile_body(client, token))
        resolution = await build_identity_resolver(store, settings).resolve(profile, session_uid)
    except SsoLinkError as exc:
        if isinstance(exc, StoreError):
            log_with_fields(
                logger,
                logging.ERROR,
                "discord callback failed on a store operation",
                session_uid=session_uid,
                exc_info=True,
            )
        audit_discord_denied(event="callback", reason=exc.reason, actor_uid=session_uid)
        return _login_failure(exc.reason)

    set_current_uid(request, resolution.uid)
    audit_discord_success(
        event="callback",
        actor_uid=resolution.uid,
        outcome_branch=resolution.outcome,
    )
    if resolution.outcome is ResolutionOutcome.session_attach:
        return _redirect("/me/edit")
    return _redirect("/")


@router.post("/logout")
async def logout(request: Request) -> Response:
    uid = get_current_uid(request)
    clear_current_uid(request)
    if uid is not None:
        audit_session_success(event="logout", actor_uid=uid)
    return _redirect("/")
