"""Replace the CADASTUR registry from an export file.

Usage: python scripts/import_registry.py <path to CADASTUR.csv>
"""

import asyncio
import sys

from app.core.redis_client import CacheManager, get_redis_client
from app.database import AsyncSessionLocal, engine
from app.middleware.logging import configure_logging
from app.services.registry_service import RegistryService


def _cache_manager() -> CacheManager | None:
    try:
        client = get_redis_client()
        client.ping()
    except Exception:
        print("Redis unavailable; cached registry lookups will expire on their own.")
        return None
    return CacheManager(client)


async def import_registry(path: str) -> None:
    """Import the export at ``path`` in one transaction."""
    with open(path, encoding="utf-8-sig") as export:
        async with AsyncSessionLocal() as session:
            result = await RegistryService(session, _cache_manager()).import_batch(export)

    await engine.dispose()

    print(f"Read:     {result.read}")
    print(f"Imported: {result.imported}")
    print(f"Skipped:  {result.skipped}")
    print(f"Errored:  {result.errored}")


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("Usage: python scripts/import_registry.py <path to CADASTUR.csv>")
        sys.exit(2)

    configure_logging()
    try:
        asyncio.run(import_registry(sys.argv[1]))
    except FileNotFoundError:
        print(f"✗ File not found: {sys.argv[1]}", file=sys.stderr)
        sys.exit(1)
