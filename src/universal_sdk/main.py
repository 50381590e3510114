"""CLI entry point: fetch the registry and list the callable operations."""

from __future__ import annotations

import asyncio
import json
from dataclasses import asdict

from .client import UniversalSdk
from .config import get_settings
from .logging import configure_logging


async def _run() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)

    async with await UniversalSdk.from_settings(settings) as sdk:
        sdk_path_map = sdk.snapshot.sdk_path_map or {}
        operations = {key: asdict(entry) for key, entry in sorted(sdk_path_map.items())}
        print(json.dumps({"hash": sdk.snapshot.hash, "operations": operations}, indent=2))


def main() -> None:
    asyncio.run(_run())


if __name__ == "__main__":
    main()
