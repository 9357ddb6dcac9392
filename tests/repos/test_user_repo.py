from __future__ import annotations

import pytest

from ssolink.errors import AccountCreationError
from ssolink.repos.users import NewUser, UserRepository, slugify
from ssolink.store import MemoryObjectStore, ObjectStore
from tests.store_test_helpers import RecordingObjectStore


def test_slugify_lowercases_and_joins_words() -> None:
    assert slugify("  Nelly Furtado ") == "nelly-furtado"
    assert slugify("o'Brien.x") == "obrienx"
    assert slugify("Müller") == "müller"


async def test_create_and_lookup_user(store: ObjectStore) -> None:
    users = UserRepository(store)

    uid = await users.create(NewUser(username="Nelly", fullname="Nelly F", email=" N@Example.com "))

    user = await users.get(uid)
    assert user is not None
    assert user.uid == uid
    assert user.username == "Nelly"
    assert user.userslug == "nelly"
    assert user.email == "n@example.com"
    assert await users.exists(uid)
    assert await users.get_uid_by_email("n@EXAMPLE.com") == uid
    assert await users.get_uid_by_email(None) is None


async def test_username_collisions_get_numeric_suffix(store: ObjectStore) -> None:
    users = UserRepository(store)

    first = await users.create(NewUser(username="sam", fullname="Sam"))
    second = await users.create(NewUser(username="Sam", fullname="Sam"))
    third = await users.create(NewUser(username="sam", fullname="Sam"))

    assert first != second != third
    assert [(await users.get(uid)).username for uid in (first, second, third)] == [  # type: ignore[union-attr]
        "sam",
        "Sam-1",
        "sam-2",
    ]


async def test_create_rejects_taken_email(store: ObjectStore) -> None:
    users = UserRepository(store)
    await users.create(NewUser(username="one", fullname="One", email="dup@example.com"))

    with pytest.raises(AccountCreationError) as excinfo:
        await users.create(NewUser(username="two", fullname="Two", email="DUP@example.com"))

    assert excinfo.value.reason == "email_taken"


@pytest.mark.parametrize("username", ["", "   ", "'''", "..."])
async def test_create_rejects_unusable_usernames(store: ObjectStore, username: str) -> None:
    with pytest.raises(AccountCreationError):
        await UserRepository(store).create(NewUser(username=username, fullname="x"))


async def test_delete_removes_record_and_indexes(store: ObjectStore) -> None:
    users = UserRepository(store)
    uid = await users.create(NewUser(username="gone", fullname="Gone", email="gone@example.com"))

    await users.delete(uid)

    assert await users.get(uid) is None
    assert not await users.exists(uid)
    assert await users.get_uid_by_email("gone@example.com") is None
    reuse = await users.create(NewUser(username="gone", fullname="Again"))
    assert (await users.get(reuse)).username == "gone"  # type: ignore[union-attr]


@pytest.mark.parametrize(
    ("key", "field"),
    [
        ("user:1", None),
        ("username:uid", "Nelly"),
        ("userslug:uid", "nelly"),
        ("email:uid", "nelly@example.com"),
    ],
)
async def test_failed_create_leaves_no_partial_account(
    recording_store: RecordingObjectStore,
    key: str,
    field: str | None,
) -> None:
    users = UserRepository(recording_store)
    op = "set_object" if field is None else "set_object_field"
    recording_store.fail_on(op, key, field)

    with pytest.raises(AccountCreationError):
        await users.create(NewUser(username="Nelly", fullname="Nelly", email="nelly@example.com"))

    assert not await users.exists(1)
    assert await recording_store.get_object("user:1") == {}
    assert await recording_store.get_object_field("username:uid", "Nelly") is None
    assert await recording_store.get_object_field("userslug:uid", "nelly") is None
    assert await users.get_uid_by_email("nelly@example.com") is None

    recording_store.clear_failures()
    uid = await users.create(NewUser(username="Nelly", fullname="Nelly", email="nelly@example.com"))
    assert (await users.get(uid)).username == "Nelly"  # type: ignore[union-attr]


async def test_delete_keeps_index_entries_owned_by_another_account() -> None:
    store = MemoryObjectStore()
    users = UserRepository(store)
    uid = await users.create(NewUser(username="kim", fullname="Kim", email="kim@example.com"))
    await store.set_object_field("email:uid", "kim@example.com", 42)

    await users.delete(uid)

    assert await store.get_object_field("email:uid", "kim@example.com") == "42"
    assert await store.get_object_field("username:uid", "kim") is None
