"""Dev seeding helper for default to-do templates."""

import asyncio

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from travelmind.config import get_settings
from travelmind.db.engine import get_async_engine, init_models
from travelmind.db.models import TodoTemplate

DEFAULT_TODO_TEMPLATES = [
    {"title": "Book outbound flight", "kind": "booking"},
    {"title": "Book return flight", "kind": "booking"},
    {"title": "Reserve hotel / lodging", "kind": "booking"},
    {"title": "Buy travel insurance", "kind": "booking"},
    {"title": "Add passports / IDs to Wallet", "kind": "docs"},
    {"title": "Check visa requirements", "kind": "docs"},
    {"title": "Enable international roaming / eSIM", "kind": "prep"},
    {"title": "Download offline maps", "kind": "prep"},
    {"title": "Notify bank of travel", "kind": "prep"},
    {"title": "Pack meds + chargers + adapters", "kind": "packing"},
]


async def seed_todo_templates(session: AsyncSession) -> int:
    """Insert default templates when the table is empty.

    This function is idempotent - safe to run multiple times.

    Returns:
        Number of templates inserted
    """
    count = await session.scalar(select(func.count()).select_from(TodoTemplate))
    if count:
        return 0

    session.add_all(TodoTemplate(**template) for template in DEFAULT_TODO_TEMPLATES)
    await session.commit()
    return len(DEFAULT_TODO_TEMPLATES)


async def main() -> None:
    settings = get_settings()
    if settings.environment != "development":
        print("Skipping seed in non-development environment")
        return

    engine = get_async_engine()
    await init_models(engine)
    async with AsyncSession(engine) as session:
        inserted = await seed_todo_templates(session)
    print(f"Seeded {inserted} to-do template(s)")


def cli() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    cli()
