"""Create the test-results table."""

import asyncio

from testlab_insights.db.connection import engine
from testlab_insights.db.models import Base


async def init() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    print("[init_db] Tables created successfully.")
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(init())
