"""Resolve a verified provider profile to exactly one local account.

Branches are evaluated in order and the first match wins:

1. session attach: an authenticated session user takes the identity;
2. known mapping: the provider id is already linked, nothing is written;
3. email merge: an account with the profile's email exists, is not linked to
   another identity, and policy allows linking to it;
4. provisioning: a new account is created and linked.

Each call runs under a per-provider-id lock. Session attach also holds the
lock of the identity it replaces, and branches 3-4 the per-email lock, so
concurrent logins for the same new identity produce a single account.
"""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass

from ssolink.errors import (
    EmailAccountLinked,
    EmailMergeBlocked,
    IdentityAlreadyLinked,
    InvalidProfile,
    StoreError,
)
from ssolink.locking import KeyedLock, identity_locks
from ssolink.logging_config import log_with_fields
from ssolink.repos.identity_mappings import IdentityMappingRepository
from ssolink.repos.users import NewUser, UserRepository, normalize_email
from ssolink.security.audit import audit_discord_denied, audit_discord_success
from ssolink.services.link_policy import LinkPolicy, SessionAttachPolicy
from ssolink.sso.profile import Profile

logger = logging.getLogger("ssolink.identity")

# Quotes, space, hyphen, period, underscore, ASCII alphanumerics and the
# U+00BF-U+1FFF / U+2C00-U+D7FF letter ranges survive; everything else goes.
_USERNAME_STRIP_RE = re.compile(r"[^'\" \-.0-9A-Z_a-z\u00BF-\u1FFF\u2C00-\uD7FF]")


def username_from_display_name(display_name: str) -> str:
    return _USERNAME_STRIP_RE.sub("", display_name)


class ResolutionOutcome(enum.StrEnum):
    session_attach = "session_attach"
    known_mapping = "known_mapping"
    email_merge = "email_merge"
    provisioned = "provisioned"


@dataclass(frozen=True)
class IdentityResolution:
    uid: int
    outcome: ResolutionOutcome


class IdentityResolver:
    def __init__(
        self,
        users: UserRepository,
        mappings: IdentityMappingRepository,
        *,
        policy: LinkPolicy | None = None,
        locks: KeyedLock | None = None,
    ) -> None:
        self.users = users
        self.mappings = mappings
        self.policy = policy if policy is not None else LinkPolicy()
        self.locks = locks if locks is not None else identity_locks

    @property
    def provider(self) -> str:
        return self.mappings.provider

    async def resolve(self, profile: Profile, session_uid: int | None = None) -> IdentityResolution:
        provider_id = profile.provider_id.strip()
        if not provider_id:
            raise InvalidProfile("profile has an empty provider id")

        log_with_fields(
            logger,
            logging.DEBUG,
            "resolving provider identity",
            provider=self.provider,
            provider_id=provider_id,
            session_uid=session_uid,
        )

        if session_uid is not None and session_uid > 0:
            if await self.users.exists(session_uid):
                return await self._attach_to_session(profile, provider_id, session_uid)
            log_with_fields(
                logger,
                logging.WARNING,
                "session uid has no user record; resolving as a fresh login",
                session_uid=session_uid,
            )

        async with self.locks.hold(self._lock_key(provider_id)):
            known = await self._known_mapping(provider_id)
            if known is not None:
                return known

            email = normalize_email(profile.email)
            if email:
                async with self.locks.hold(f"email:{email}"):
                    return await self._merge_or_provision(profile, provider_id, email)
            return await self._provision(profile, provider_id)

    def _lock_key(self, provider_id: str) -> str:
        return f"{self.provider}:{provider_id}"

    async def _attach_to_session(
        self, profile: Profile, provider_id: str, uid: int
    ) -> IdentityResolution:
        # Lock the incoming identity and the one it replaces; retry if the
        # user's link changed while waiting.
        while True:
            current = await self.mappings.get_provider_id(uid)
            keys = [self._lock_key(provider_id)]
            if current is not None:
                keys.append(self._lock_key(current))
            async with self.locks.hold_many(*keys):
                if await self.mappings.get_provider_id(uid) == current:
                    return await self._attach_locked(profile, provider_id, uid, current)

    async def _attach_locked(
        self, profile: Profile, provider_id: str, uid: int, current: str | None
    ) -> IdentityResolution:
        owner = await self.mappings.get_uid(provider_id)
        if owner is not None and owner != uid:
            if self.policy.session_attach is SessionAttachPolicy.reject:
                audit_discord_denied(
                    event="identity_link",
                    reason=IdentityAlreadyLinked.reason,
                    actor_uid=uid,
                    provider_id=provider_id,
                    owner_uid=owner,
                )
                raise IdentityAlreadyLinked(
                    f"{self.provider} identity {provider_id} is linked to another account"
                )
            if await self.mappings.get_provider_id(owner) == provider_id:
                await self.mappings.remove_forward(owner)
            audit_discord_success(
                event="identity_relink",
                actor_uid=uid,
                provider_id=provider_id,
                previous_uid=owner,
            )

        if owner == uid and current == provider_id:
            return IdentityResolution(uid=uid, outcome=ResolutionOutcome.session_attach)

        if current is not None and current != provider_id:
            # Replacing this user's previous identity; drop its reverse entry
            # unless someone else has claimed it since.
            if await self.mappings.get_uid(current) == uid:
                await self.mappings.remove_reverse(current)

        await self.mappings.link(uid, provider_id)
        audit_discord_success(
            event="identity_link",
            actor_uid=uid,
            provider_id=provider_id,
            display_name=profile.display_name,
        )
        return IdentityResolution(uid=uid, outcome=ResolutionOutcome.session_attach)

    async def _known_mapping(self, provider_id: str) -> IdentityResolution | None:
        uid = await self.mappings.get_uid(provider_id)
        if uid is None:
            return None

        if not await self.users.exists(uid):
            log_with_fields(
                logger,
                logging.WARNING,
                "reverse mapping points at a missing user; discarding it",
                provider_id=provider_id,
                uid=uid,
            )
            await self.mappings.remove_reverse(provider_id)
            return None

        audit_discord_success(event="login", actor_uid=uid, provider_id=provider_id)
        return IdentityResolution(uid=uid, outcome=ResolutionOutcome.known_mapping)

    async def _merge_or_provision(
        self, profile: Profile, provider_id: str, email: str
    ) -> IdentityResolution:
        existing = await self.users.get_uid_by_email(email)
        if existing is None:
            return await self._provision(profile, provider_id)

        if not self.policy.email_merge.permits(profile):
            audit_discord_denied(
                event="email_merge",
                reason=EmailMergeBlocked.reason,
                provider_id=provider_id,
                email=email,
                email_verified=profile.email_verified,
            )
            raise EmailMergeBlocked(
                "an account with this email exists; sign in and link from account settings"
            )

        linked = await self.mappings.get_provider_id(existing)
        if linked is not None and linked != provider_id:
            if await self.mappings.get_uid(linked) == existing:
                audit_discord_denied(
                    event="email_merge",
                    reason=EmailAccountLinked.reason,
                    actor_uid=existing,
                    provider_id=provider_id,
                    linked_provider_id=linked,
                )
                raise EmailAccountLinked(
                    f"the account with this email is already linked to another {self.provider}"
                    " identity"
                )
            log_with_fields(
                logger,
                logging.WARNING,
                "replacing forward field with no matching reverse entry",
                uid=existing,
                stale_provider_id=linked,
            )

        await self.mappings.link(existing, provider_id)
        audit_discord_success(
            event="email_merge",
            actor_uid=existing,
            provider_id=provider_id,
            email=email,
            email_verified=profile.email_verified,
        )
        return IdentityResolution(uid=existing, outcome=ResolutionOutcome.email_merge)

    async def _provision(self, profile: Profile, provider_id: str) -> IdentityResolution:
        new_user = NewUser(
            username=username_from_display_name(profile.display_name),
            fullname=profile.display_name,
            email=normalize_email(profile.email),
        )
        uid = await self.users.create(new_user)

        try:
            await self.mappings.link(uid, provider_id)
        except StoreError:
            await self._discard_orphan(uid, provider_id)
            raise

        if profile.avatar_url:
            try:
                await self.users.set_user_field(uid, "uploadedpicture", profile.avatar_url)
                await self.users.set_user_field(uid, "picture", profile.avatar_url)
            except StoreError:
                log_with_fields(
                    logger,
                    logging.WARNING,
                    "could not store provider avatar",
                    uid=uid,
                    exc_info=True,
                )

        audit_discord_success(
            event="provision",
            actor_uid=uid,
            provider_id=provider_id,
            username=new_user.username,
        )
        return IdentityResolution(uid=uid, outcome=ResolutionOutcome.provisioned)

    async def _discard_orphan(self, uid: int, provider_id: str) -> None:
        try:
            if await self.mappings.get_uid(provider_id) == uid:
                await self.mappings.remove_reverse(provider_id)
            await self.users.delete(uid)
        except StoreError:
            log_with_fields(
                logger,
                logging.ERROR,
                "could not remove account left unlinked by a failed link write",
                uid=uid,
                provider_id=provider_id,
                exc_info=True,
            )
            return
        log_with_fields(
            logger,
            logging.WARNING,
            "removed account left unlinked by a failed link write",
            uid=uid,
            provider_id=provider_id,
        )
