import asyncio
import logging
import random
from datetime import timedelta
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from app.db.base import utcnow
from app.models.auth.user import User
from app.models.inventory.product import Product
from app.models.inventory.stock_level import StockLevel
from app.models.organization.location import Location
from app.models.shared.enums import UserRoleType
from app.core.security import get_password_hash

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "Demo123!"

USERS_SEED = [
    {"email": "admin@demo.com", "full_name": "Alice Admin", "role": UserRoleType.ADMIN, "age_days": 30},
    {"email": "worker1@demo.com", "full_name": "Bob Worker", "role": UserRoleType.WORKER, "age_days": 25},
    {"email": "worker2@demo.com", "full_name": "Carol Worker", "role": UserRoleType.WORKER, "age_days": 20},
]

LOCATIONS_SEED = [
    {"code": "WH-A", "name": "Warehouse A - Main Storage", "description": "Primary storage facility"},
    {"code": "WH-B", "name": "Warehouse B - Overflow", "description": "Secondary storage for overflow inventory"},
    {"code": "SF-01", "name": "Store Front - Display Area", "description": "Customer-facing display area"},
    {"code": "BR-01", "name": "Back Room - Reserve Stock", "description": "Reserve stock behind store front"},
    {"code": "RET-1", "name": "Returns Processing", "description": "Area for processing returned items"},
]

PRODUCTS_SEED = [
    # Electronics
    {"sku": "ELEC-001", "name": "Wireless Mouse", "category": "Electronics", "description": "Ergonomic wireless mouse with USB receiver"},
    {"sku": "ELEC-002", "name": "Keyboard Pro", "category": "Electronics", "description": "Mechanical keyboard with RGB lighting"},
    {"sku": "ELEC-003", "name": "USB-C Hub", "category": "Electronics", "description": "7-port USB-C hub with HDMI"},
    {"sku": "ELEC-004", "name": "Monitor Stand", "category": "Electronics", "description": "Adjustable monitor stand with USB ports"},
    {"sku": "ELEC-005", "name": "Webcam HD", "category": "Electronics", "description": "1080p HD webcam with microphone"},
    # Office
    {"sku": "OFFICE-001", "name": "Stapler Heavy Duty", "category": "Office", "description": "Heavy duty stapler for up to 100 sheets"},
    {"sku": "OFFICE-002", "name": "Paper Clips Box", "category": "Office", "description": "Box of 100 paper clips"},
    {"sku": "OFFICE-003", "name": "Notebook A5", "category": "Office", "description": "A5 lined notebook, 200 pages"},
    {"sku": "OFFICE-004", "name": "Pen Set", "category": "Office", "description": "Set of 12 ballpoint pens"},
    {"sku": "OFFICE-005", "name": "Desk Organizer", "category": "Office", "description": "Multi-compartment desk organizer"},
    # Tools
    {"sku": "TOOL-001", "name": "Screwdriver Set", "category": "Tools", "description": "32-piece precision screwdriver set"},
    {"sku": "TOOL-002", "name": "Measuring Tape", "category": "Tools", "description": "25ft retractable measuring tape"},
    {"sku": "TOOL-003", "name": "Utility Knife", "category": "Tools", "description": "Retractable utility knife with extra blades"},
    {"sku": "TOOL-004", "name": "Flashlight LED", "category": "Tools", "description": "Rechargeable LED flashlight"},
    {"sku": "TOOL-005", "name": "Wrench Set", "category": "Tools", "description": "10-piece combination wrench set"},
    # Packaging
    {"sku": "PACK-001", "name": "Cardboard Box S", "category": "Packaging", "description": "Small cardboard shipping box"},
    {"sku": "PACK-002", "name": "Cardboard Box M", "category": "Packaging", "description": "Medium cardboard shipping box"},
    {"sku": "PACK-003", "name": "Bubble Wrap Roll", "category": "Packaging", "description": "50ft bubble wrap roll"},
    {"sku": "PACK-004", "name": "Packing Tape", "category": "Packaging", "description": "Clear packing tape, 3-pack"},
    {"sku": "PACK-005", "name": "Labels Pack", "category": "Packaging", "description": "500 shipping labels"},
]

async def create_initial_data(session: AsyncSession) -> bool:
    """Create demo users, locations, products and stock levels on an empty database"""
    user_count = (await session.execute(select(func.count(User.id)))).scalar() or 0
    if user_count:
        logger.info("Users already present, skipping demo data")
        return False

    try:
        logger.info("📋 Creating initial data...")

        create_demo_users(session)
        locations = create_demo_locations(session)
        products = create_demo_products(session)
        await session.flush()

        create_demo_stock_levels(session, locations, products)

        await session.commit()
        logger.info("✅ Initial data created successfully")
        return True

    except Exception as e:
        logger.error(f"❌ Error creating initial data: {str(e)}")
        await session.rollback()
        raise

def create_demo_users(session: AsyncSession):
    now = utcnow()
    hashed_password = get_password_hash(DEMO_PASSWORD)
    for user_data in USERS_SEED:
        session.add(User(
            email=user_data["email"],
            full_name=user_data["full_name"],
            role=user_data["role"],
            hashed_password=hashed_password,
            is_active=True,
            created_at=now - timedelta(days=user_data["age_days"])
        ))
        logger.info(f"Created user: {user_data['email']}")

def create_demo_locations(session: AsyncSession):
    locations = [Location(**location_data) for location_data in LOCATIONS_SEED]
    session.add_all(locations)
    return locations

def create_demo_products(session: AsyncSession):
    products = [Product(**product_data) for product_data in PRODUCTS_SEED]
    session.add_all(products)
    return products

def create_demo_stock_levels(session: AsyncSession, locations, products):
    """Each location stocks a random subset of the catalogue"""
    rng = random.Random(42)  # Fixed seed for reproducible demo data
    now = utcnow()
    for location in locations:
        subset = rng.sample(products, rng.randint(12, len(products)))
        for product in subset:
            session.add(StockLevel(
                product_id=product.id,
                location_id=location.id,
                quantity=rng.randint(5, 199),
                updated_at=now - timedelta(days=rng.randint(1, 29))
            ))
        logger.info(f"Stocked {len(subset)} products at {location.code}")

if __name__ == "__main__":
    from app.core.database import async_session_maker

    async def main():
        async with async_session_maker() as session:
            if await create_initial_data(session):
                print("✅ Initial data setup complete.")

    asyncio.run(main())
