from __future__ import annotations

import logging

from ssolink.errors import StoreError
from ssolink.locking import KeyedLock, identity_locks
from ssolink.logging_config import log_with_fields
from ssolink.repos.identity_mappings import IdentityMappingRepository
from ssolink.security.audit import audit_discord_denied, audit_discord_success

logger = logging.getLogger("ssolink.identity")


async def _unlink(mappings: IdentityMappingRepository, uid: int, provider_id: str) -> None:
    owner = await mappings.get_uid(provider_id)
    if owner == uid:
        await mappings.remove_reverse(provider_id)
    elif owner is not None:
        # Stale forward field: the identity now belongs to someone else.
        audit_discord_denied(
            event="identity_unlink",
            reason="reverse_owned_by_other_user",
            actor_uid=uid,
            provider_id=provider_id,
            owner_uid=owner,
        )
    await mappings.remove_forward(uid)


async def deauthorize(
    mappings: IdentityMappingRepository,
    uid: int,
    *,
    locks: KeyedLock | None = None,
) -> str | None:
    """Remove ``uid``'s provider link, reverse entry first, then forward field.

    Returns the provider id that was unlinked, or ``None`` when the account had
    no link. Each step tolerates the previous attempt having already run, so
    calling again after a ``StoreError`` finishes the job.
    """
    selected_locks = locks if locks is not None else identity_locks
    log_with_fields(logger, logging.DEBUG, "deauthorize invoked", uid=uid)

    try:
        provider_id = await mappings.get_provider_id(uid)
        if provider_id is None:
            log_with_fields(logger, logging.INFO, "no provider link to remove", uid=uid)
            return None

        async with selected_locks.hold(f"{mappings.provider}:{provider_id}"):
            # A concurrent call may have finished first.
            if await mappings.get_provider_id(uid) != provider_id:
                return None
            await _unlink(mappings, uid, provider_id)
    except StoreError:
        log_with_fields(
            logger,
            logging.ERROR,
            "could not remove provider link",
            uid=uid,
            exc_info=True,
        )
        raise

    audit_discord_success(event="identity_unlink", actor_uid=uid, provider_id=provider_id)
    return provider_id
