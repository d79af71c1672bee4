#!/usr/bin/env python3
"""Inspect or edit an options file through the pyoptions store.

Writes go through the real store, so values equal to their default are
stripped from the file rather than stored.

Usage
-----
::

    python scripts/options_tool.py --file options.json dump
    python scripts/options_tool.py --file options.json get editor.tabSize
    python scripts/options_tool.py --file options.json set editor.tabSize 4

Options::

    --file FILE     JSON options file (default: $PYOPTIONS_FILE or options.json)
    --stored        With ``dump``: print only stored (non-default) values
    -v, --verbose   Enable debug traces
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

from pyoptions import JsonFileStorage, OptionsConfig, OptionsStore  # noqa: E402


def _parse_value(raw: str) -> Any:
    """Accept JSON; fall back to the raw string for bare words."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


async def _run(args: argparse.Namespace) -> int:
    config = OptionsConfig.from_env(debug=args.verbose)
    store = OptionsStore(storage=JsonFileStorage(args.file), config=config)
    await store.initialize()
    try:
        if args.command == "get":
            print(json.dumps(store.get_option(args.key), indent=2))
        elif args.command == "set":
            store.set_options({"key": args.key, "value": _parse_value(args.value)})
            print(json.dumps(store.get_option(args.key), indent=2))
        else:
            data = store.options if args.stored else store.get_all_options()
            print(json.dumps(data, indent=2, sort_keys=True))
    finally:
        await store.aclose()
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--file", default=os.environ.get("PYOPTIONS_FILE", "options.json"))
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    get_parser = sub.add_parser("get", help="Print the effective value of KEY")
    get_parser.add_argument("key")

    set_parser = sub.add_parser("set", help="Set KEY to a JSON VALUE")
    set_parser.add_argument("key")
    set_parser.add_argument("value")

    dump_parser = sub.add_parser("dump", help="Print all options")
    dump_parser.add_argument("--stored", action="store_true")

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )
    return asyncio.run(_run(args))


if __name__ == "__main__":
    sys.exit(main())
