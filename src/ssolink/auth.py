from __future__ import annotations

from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ssolink.db import get_session
from ssolink.repos.users import UserRepository
from ssolink.store.sql import SqlObjectStore

_SESSION_UID_KEY = "uid"


def get_current_uid(request: Request) -> int | None:
    raw = request.session.get(_SESSION_UID_KEY)
    if raw is None:
        return None

    try:
        uid = int(raw)
    except (TypeError, ValueError):
        return None
    return uid if uid > 0 else None


def set_current_uid(request: Request, uid: int) -> None:
    request.session[_SESSION_UID_KEY] = uid


def clear_current_uid(request: Request) -> None:
    request.session.pop(_SESSION_UID_KEY, None)


async def get_object_store(session: AsyncSession = Depends(get_session)) -> SqlObjectStore:
    return SqlObjectStore(session)


async def require_uid(
    request: Request,
    store: SqlObjectStore = Depends(get_object_store),
) -> int:
    uid = get_current_uid(request)
    if uid is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    if not await UserRepository(store).exists(uid):
        raise HTTPException(status_code=401, detail="Not authenticated")
    return uid
