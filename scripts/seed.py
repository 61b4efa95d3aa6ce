#!/usr/bin/env python3
"""Seed a development database with demo users, campaigns, links and clicks.

Wipes the link/campaign/user tables first. Refuses to run in production.
"""

import asyncio
import sys
from pathlib import Path

from loguru import logger

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from utm_connect.core.auth import PasswordHasher  # noqa: E402
from utm_connect.core.environment import Environment  # noqa: E402
from utm_connect.core.logger import setup_structured_logging  # noqa: E402
from utm_connect.core.settings import get_settings  # noqa: E402
from utm_connect.models.database import Database  # noqa: E402
from utm_connect.repositories import (  # noqa: E402
    CampaignRepository,
    LinkRepository,
    UserRepository,
)

DEMO_PASSWORD = "DemoPassword1!"

USERS = [
    {"email": "john@example.com", "name": "John Doe"},
    {"email": "jane@example.com", "name": "Jane Smith"},
]

# (owner index, name, description)
CAMPAIGNS = [
    (0, "Summer Sale 2026", "Marketing campaign for summer products"),
    (0, "Product Launch", "New feature announcement campaign"),
    (1, "Black Friday 2026", "Black Friday special offers"),
]

# (owner index, campaign index or None, short code, url)
LINKS = [
    (0, 0, "sum2026",
     "https://example.com/products/summer-collection?utm_source=email&utm_medium=newsletter"),
    (0, 1, "newft", "https://example.com/new-feature?utm_source=twitter&utm_medium=social"),
    (1, 2, "bf2026",
     "https://example.com/black-friday?utm_source=instagram&utm_medium=social&utm_campaign=bf2026"),
    (1, None, "promo99",
     "https://example.com/promo?utm_source=facebook&utm_medium=cpc&utm_campaign=awareness"),
]

# (link index, user agent, referer, ip)
CLICKS = [
    (0, "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7)", "https://example.com", "192.168.1.1"),
    (0, "Mozilla/5.0 (iPhone; CPU iPhone OS 14_7_1 like Mac OS X)", "https://twitter.com",
     "192.168.1.2"),
    (2, "Mozilla/5.0 (Windows NT 10.0; Win64; x64)", "https://instagram.com", "192.168.1.3"),
]


async def clear(db: Database) -> None:
    async with db.transaction() as conn:
        for table in ("link_analytics", "links", "campaigns", "refresh_tokens", "users"):
            await conn.execute(f"DELETE FROM {table}")


async def seed() -> None:
    settings = get_settings()
    hasher = PasswordHasher.from_settings(settings)

    async with Database.from_settings(settings) as db:
        logger.info("Clearing existing data...")
        await clear(db)

        users_repo = UserRepository(db)
        campaigns_repo = CampaignRepository(db)
        links_repo = LinkRepository(db)

        hashed = await asyncio.to_thread(hasher.hash, DEMO_PASSWORD)
        users = [await users_repo.create({**data, "password": hashed}) for data in USERS]
        logger.info(f"Created users: {', '.join(u.email for u in users)}")

        campaigns = [
            await campaigns_repo.create(name, users[owner].id, description)
            for owner, name, description in CAMPAIGNS
        ]
        logger.info(f"Created campaigns: {', '.join(c.name for c in campaigns)}")

        links = []
        for owner, campaign, code, url in LINKS:
            campaign_id = campaigns[campaign].id if campaign is not None else None
            links.append(await links_repo.create(url, code, users[owner].id, campaign_id))
        logger.info(f"Created links: {', '.join(link.short_code for link in links)}")

        for link_index, user_agent, referer, ip_address in CLICKS:
            await links_repo.record_click(links[link_index].id, user_agent, referer, ip_address)
        logger.info(f"Recorded {len(CLICKS)} clicks")

    logger.info(f"Seeding complete. Demo users log in with password {DEMO_PASSWORD!r}")


def main() -> None:
    setup_structured_logging("INFO", json_format=False)
    if Environment.is_production():
        logger.error("Refusing to seed a production database (set ENV=development)")
        sys.exit(1)
    asyncio.run(seed())


if __name__ == "__main__":
    main()
