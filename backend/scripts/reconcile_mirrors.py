"""Rebuild the embedded booking copies from the bookings ledger.

Run from the backend directory:
    python -m scripts.reconcile_mirrors                  # every property and user
    python -m scripts.reconcile_mirrors --property <id>  # one property
    python -m scripts.reconcile_mirrors --user <id>      # one user
"""

import argparse
import asyncio
import logging
import sys
import uuid
from pathlib import Path

# Add backend to path so imports work when run as a script
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from bookhaven.database import async_session_factory, engine
from bookhaven.services.booking_service import reconcile_mirrors


async def run(property_id: uuid.UUID | None, user_id: uuid.UUID | None) -> int:
    async with async_session_factory() as session:
        changed = await reconcile_mirrors(session, property_id=property_id, user_id=user_id)
        await session.commit()
    await engine.dispose()
    return changed


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    target = parser.add_mutually_exclusive_group()
    target.add_argument("--property", dest="property_id", type=uuid.UUID)
    target.add_argument("--user", dest="user_id", type=uuid.UUID)
    args = parser.parse_args()

    changed = asyncio.run(run(args.property_id, args.user_id))
    print(f"✅ Rebuilt {changed} mirror(s)")


if __name__ == "__main__":
    main()
