#!/usr/bin/env python3
"""Hydrate a store from the backend and print the state snapshot.

Usage
-----
Set environment variables and run::

    export SUPABASE_URL="https://abcd.supabase.co"
    export SUPABASE_ANON_KEY="..."
    python scripts/dump_state.py

Options::

    --slice NAME         Only fetch this slice (repeatable; default: all)
    --email / --password Sign in first (or CHEER_EMAIL / CHEER_PASSWORD)
    --include-raw        Keep the raw backend rows in the output
    --output FILE        Write output to FILE instead of stdout
    -v                   Debug logging
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pydantic import BaseModel  # noqa: E402

from pycheer import AuthSync, CheerClient, CheerConfig, build_store  # noqa: E402
from pycheer._redact import redact_payload  # noqa: E402
from pycheer.exceptions import CheerError  # noqa: E402
from pycheer.state.events import SliceName  # noqa: E402


def _to_jsonable(value: Any, include_raw: bool) -> Any:
    if isinstance(value, BaseModel):
        exclude = None if include_raw else {"raw"}
        return value.model_dump(mode="json", exclude=exclude)
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(v, include_raw) for v in value]
    return value


def _dump_slice(state: Any, include_raw: bool) -> dict[str, Any]:
    data = state.model_dump(mode="json", exclude={"items", "selected"})
    items = getattr(state, "items", None)
    if items is not None:
        data["items"] = _to_jsonable(items, include_raw)
        data["count"] = len(items)
    return data


async def _run(args: argparse.Namespace) -> dict[str, Any]:
    config = CheerConfig.from_env()
    async with CheerClient(config) as client:
        email = args.email or os.environ.get("CHEER_EMAIL")
        password = args.password or os.environ.get("CHEER_PASSWORD")
        if email and password:
            await client.auth.sign_in_with_password(email, password)

        store = build_store(client)
        async with AuthSync(store, client, store.resources.auth) as auth_sync:
            await auth_sync.wait_until_hydrated()
            names = args.slice or [r.name for r in store.resources.entity_slices]
            tasks = [store.dispatch(store.resources.resource(name).fetch_all()) for name in names]
            await asyncio.gather(*tasks)

        state = store.get_state()
        auth = state[SliceName.AUTH]
        return {
            "auth": {
                "hydrated": auth.hydrated,
                "error": auth.error,
                "session": (
                    redact_payload(auth.session.model_dump(mode="json", exclude={"raw"})) if auth.session else None
                ),
                "user": _to_jsonable(auth.user, args.include_raw),
                "profile": _to_jsonable(auth.profile, args.include_raw),
            },
            **{name: _dump_slice(state[name], args.include_raw) for name in names},
        }


def main() -> int:
    parser = argparse.ArgumentParser(description="Dump the hydrated site state as JSON")
    parser.add_argument(
        "--slice",
        action="append",
        choices=[str(n) for n in SliceName if n != SliceName.AUTH],
        help="Only fetch this slice",
    )
    parser.add_argument("--email")
    parser.add_argument("--password")
    parser.add_argument("--include-raw", action="store_true")
    parser.add_argument("--output", type=Path)
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        snapshot = asyncio.run(_run(args))
    except CheerError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    text = json.dumps(snapshot, indent=2, ensure_ascii=False)
    if args.output:
        args.output.write_text(text + "\n", encoding="utf-8")
    else:
        print(text)
    return 0


if __name__ == "__main__":
    sys.exit(main())
