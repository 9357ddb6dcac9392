from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import RedirectResponse
from starlette.responses import Response

from ssolink.auth import get_object_store, require_uid
from ssolink.errors import StoreError
from ssolink.services.associations import get_association
from ssolink.services.deauthorization import deauthorize
from ssolink.services.discord_identity import build_identity_mappings
from ssolink.settings import get_settings
from ssolink.sso.discord.provider import DEAUTH_PATH, DISPLAY_NAME
from ssolink.store.sql import SqlObjectStore

router = APIRouter()


@router.get("/api/user/associations")
async def list_associations(
    uid: int = Depends(require_uid),
    store: SqlObjectStore = Depends(get_object_store),
) -> dict[str, list[dict[str, Any]]]:
    association = await get_association(
        build_identity_mappings(store), uid, base_url=get_settings().base_url()
    )
    return {"associations": [association.as_dict()]}


@router.get(DEAUTH_PATH)
async def deauth_confirm(uid: int = Depends(require_uid)) -> dict[str, str]:
    _ = uid
    return {"service": DISPLAY_NAME}


@router.post(DEAUTH_PATH)
async def deauth_submit(
    uid: int = Depends(require_uid),
    store: SqlObjectStore = Depends(get_object_store),
) -> Response:
    try:
        await deauthorize(build_identity_mappings(store), uid)
    except StoreError as exc:
        raise HTTPException(
            status_code=503, detail=f"Could not remove the {DISPLAY_NAME} link"
        ) from exc
    return RedirectResponse(url=f"{get_settings().relative_path}/me/edit", status_code=303)
