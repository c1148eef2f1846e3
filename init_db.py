import asyncio
import logging

from sqlalchemy import text

from kairos.core.database import engine, Base, IS_SQLITE
# Import models to ensure they are registered with Base.metadata
from kairos.models import task, user, notification, notification_preference, sync_status  # noqa: F401

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("init_db")

async def init_db():
    logger.info("Starting Database Initialization...")

    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info(f"✅ Created tables: {', '.join(sorted(Base.metadata.tables))}")

        if not IS_SQLITE:
            async with engine.connect() as conn:
                result = await conn.execute(text("SELECT version();"))
                logger.info(f"Database Version: {result.scalar()}")
    except Exception as e:
        logger.error(f"❌ Database initialization failed: {e}")
        if "ssl" in str(e).lower():
            logger.error("Hint: hosted Postgres needs SSL; check the connection string.")
        raise
    finally:
        await engine.dispose()

if __name__ == "__main__":
    asyncio.run(init_db())
