import logging
from app.core.config import settings
from app.core.database import engine, async_session_maker
from app.models import *  # Import all models
from app.db.seeds.initial_data import create_initial_data

logger = logging.getLogger(__name__)

async def create_tables():
    """Create all database tables"""
    try:
        from app.models.base import Base

        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        logger.info("✅ Database tables created successfully")

    except Exception as e:
        logger.error(f"❌ Error creating tables: {str(e)}")
        raise

async def init_db():
    """Initialize the database"""
    try:
        logger.info(f"🗄️  Initializing database for {settings.ENVIRONMENT} environment...")

        await create_tables()

        if settings.SEED_DEMO_DATA:
            async with async_session_maker() as session:
                await create_initial_data(session)

        logger.info("✅ Database initialized successfully")

    except Exception as e:
        logger.error(f"❌ Database initialization failed: {str(e)}")
        raise
