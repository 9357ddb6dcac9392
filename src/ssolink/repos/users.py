from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import UTC, datetime

from ssolink.errors import AccountCreationError, StoreError
from ssolink.logging_config import log_with_fields
from ssolink.store.base import FieldValue, ObjectStore

_SLUG_STRIP_RE = re.compile(r"[^\w\s-]")
_SLUG_SEPARATOR_RE = re.compile(r"[\s_-]+")

logger = logging.getLogger("ssolink.users")


def user_key(uid: int) -> str:
    return f"user:{uid}"


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def slugify(value: str) -> str:
    slug = _SLUG_STRIP_RE.sub("", value.strip().lower())
    return _SLUG_SEPARATOR_RE.sub("-", slug).strip("-")


def parse_uid(raw: str | None) -> int | None:
    if raw is None:
        return None
    try:
        uid = int(raw)
    except ValueError:
        return None
    return uid if uid > 0 else None


@dataclass(frozen=True)
class NewUser:
    username: str
    fullname: str
    email: str = ""


@dataclass(frozen=True)
class UserRecord:
    uid: int
    username: str
    userslug: str
    fullname: str
    email: str
    picture: str
    uploadedpicture: str

    @classmethod
    def from_fields(cls, uid: int, fields: dict[str, str]) -> UserRecord:
        return cls(
            uid=uid,
            username=fields.get("username", ""),
            userslug=fields.get("userslug", ""),
            fullname=fields.get("fullname", ""),
            email=fields.get("email", ""),
            picture=fields.get("picture", ""),
            uploadedpicture=fields.get("uploadedpicture", ""),
        )


class UserRepository:
    """User accounts kept as ``user:<uid>`` hashes plus lookup indexes."""

    def __init__(self, store: ObjectStore) -> None:
        self.store = store

    async def get(self, uid: int) -> UserRecord | None:
        fields = await self.store.get_object(user_key(uid))
        if not fields:
            return None
        return UserRecord.from_fields(uid, fields)

    async def exists(self, uid: int) -> bool:
        return await self.store.get_object_field(user_key(uid), "uid") is not None

    async def get_user_field(self, uid: int, field: str) -> str | None:
        return await self.store.get_object_field(user_key(uid), field)

    async def set_user_field(self, uid: int, field: str, value: FieldValue) -> None:
        await self.store.set_object_field(user_key(uid), field, value)

    async def delete_user_field(self, uid: int, field: str) -> None:
        await self.store.delete_object_field(user_key(uid), field)

    async def get_uid_by_email(self, email: str | None) -> int | None:
        normalized = normalize_email(email)
        if not normalized:
            return None
        return parse_uid(await self.store.get_object_field("email:uid", normalized))

    async def _unique_username(self, username: str) -> tuple[str, str]:
        base_slug = slugify(username)
        if not base_slug:
            raise AccountCreationError(
                f"username {username!r} has no usable characters", reason="invalid_username"
            )

        candidate, slug = username, base_slug
        suffix = 0
        while await self.store.get_object_field("userslug:uid", slug) is not None:
            suffix += 1
            candidate = f"{username}-{suffix}"
            slug = f"{base_slug}-{suffix}"
        return candidate, slug

    async def create(self, new_user: NewUser) -> int:
        username = new_user.username.strip()
        if not username:
            raise AccountCreationError("username is empty", reason="invalid_username")
        email = normalize_email(new_user.email)

        try:
            if email and await self.get_uid_by_email(email) is not None:
                raise AccountCreationError(
                    "email address is already in use", reason="email_taken"
                )
            username, userslug = await self._unique_username(username)
            uid = await self.store.increment_object_field("global", "nextUid")
        except StoreError as exc:
            raise AccountCreationError(f"could not create user {username!r}: {exc}") from exc

        try:
            await self.store.set_object(
                user_key(uid),
                {
                    "uid": uid,
                    "username": username,
                    "userslug": userslug,
                    "fullname": new_user.fullname,
                    "email": email,
                    "picture": "",
                    "uploadedpicture": "",
                    "joindate": int(datetime.now(UTC).timestamp() * 1000),
                },
            )
            await self.store.set_object_field("username:uid", username, uid)
            await self.store.set_object_field("userslug:uid", userslug, uid)
            if email:
                await self.store.set_object_field("email:uid", email, uid)
        except StoreError as exc:
            await self._discard_partial(uid)
            raise AccountCreationError(f"could not create user {username!r}: {exc}") from exc

        return uid

    async def _discard_partial(self, uid: int) -> None:
        try:
            await self.delete(uid)
        except StoreError:
            log_with_fields(
                logger,
                logging.ERROR,
                "could not remove partially created user",
                uid=uid,
                exc_info=True,
            )

    async def delete(self, uid: int) -> None:
        fields = await self.store.get_object(user_key(uid))
        for index, field in (
            ("username:uid", "username"),
            ("userslug:uid", "userslug"),
            ("email:uid", "email"),
        ):
            value = fields.get(field)
            if not value:
                continue
            # Leave index entries that another account owns.
            if parse_uid(await self.store.get_object_field(index, value)) == uid:
                await self.store.delete_object_field(index, value)
        await self.store.delete_object(user_key(uid))
