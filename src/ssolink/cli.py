from __future__ import annotations

import argparse
import asyncio
import json

import ssolink.db as db
from ssolink.db.models import Base
from ssolink.repos.plugin_settings import PluginSettingsRepository
from ssolink.services.associations import get_association
from ssolink.services.deauthorization import deauthorize
from ssolink.services.discord_identity import build_identity_mappings
from ssolink.settings import get_settings
from ssolink.sso.discord.provider import PLUGIN_ID
from ssolink.store.sql import SqlObjectStore


async def _init_db() -> None:
    async with db.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def _set_credentials(client_id: str | None, client_secret: str | None) -> None:
    async with db.SessionMaker() as session:
        repo = PluginSettingsRepository(SqlObjectStore(session), PLUGIN_ID)
        await repo.update({"id": client_id, "secret": client_secret})
        configured = await repo.get()

    state = {field: ("set" if configured.get(field) else "unset") for field in ("id", "secret")}
    print(f"{PLUGIN_ID}: id={state['id']} secret={state['secret']}")


async def _show_association(uid: int) -> None:
    async with db.SessionMaker() as session:
        association = await get_association(
            build_identity_mappings(SqlObjectStore(session)),
            uid,
            base_url=get_settings().base_url(),
        )
    print(json.dumps(association.as_dict(), indent=2))


async def _deauth(uid: int) -> None:
    async with db.SessionMaker() as session:
        removed = await deauthorize(build_identity_mappings(SqlObjectStore(session)), uid)

    if removed is None:
        print(f"uid {uid} had no link")
    else:
        print(f"uid {uid}: removed link to {removed}")


def main() -> None:
    parser = argparse.ArgumentParser(prog="ssolink")
    sub = parser.add_subparsers(dest="cmd", required=True)

    sub.add_parser("init-db")
    creds = sub.add_parser("set-credentials", help="store the Discord client id/secret")
    creds.add_argument("--client-id")
    creds.add_argument("--client-secret")
    show = sub.add_parser("show-association")
    show.add_argument("uid", type=int)
    deauth = sub.add_parser("deauth")
    deauth.add_argument("uid", type=int)

    args = parser.parse_args()

    if args.cmd == "init-db":
        asyncio.run(_init_db())
    elif args.cmd == "set-credentials":
        asyncio.run(_set_credentials(args.client_id, args.client_secret))
    elif args.cmd == "show-association":
        asyncio.run(_show_association(args.uid))
    elif args.cmd == "deauth":
        asyncio.run(_deauth(args.uid))
    else:
        raise SystemExit(2)
