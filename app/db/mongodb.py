from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING
from app.core.config import settings
import logging

logger = logging.getLogger(__name__)

class Database:
    client: AsyncIOMotorClient = None
    db = None

db = Database()

async def connect_to_mongo():
    """Connect to MongoDB."""
    try:
        logger.info("Connecting to MongoDB...")
        db.client = AsyncIOMotorClient(settings.MONGO_URI)
        db.db = db.client[settings.DB_NAME]
        logger.info("Connected to MongoDB.")

        # Create indexes for collections
        await create_indexes()

    except Exception as e:
        logger.error(f"Could not connect to MongoDB: {e}")
        raise e

async def close_mongo_connection():
    """Close MongoDB connection."""
    if db.client:
        logger.info("Closing MongoDB connection...")
        db.client.close()
        logger.info("MongoDB connection closed.")

async def create_indexes():
    """Create indexes for collections."""
    try:
        # Service slot templates are looked up per service and weekday
        await db.db.service_slots.create_index(
            [("serviceId", ASCENDING), ("dayOfWeek", ASCENDING), ("isActive", ASCENDING)]
        )
        await db.db.service_slots.create_index("stylistId")

        # Bookings collection indexes
        await db.db.bookings.create_index([("stylistId", ASCENDING), ("start", ASCENDING)])
        await db.db.bookings.create_index("clientId")
        await db.db.bookings.create_index("status")

        # Payments collection indexes
        await db.db.payments.create_index("bookingId")
        await db.db.payments.create_index([("bookingId", ASCENDING), ("status", ASCENDING)])

        # Ratings collection indexes
        await db.db.ratings.create_index("stylistId")
        await db.db.ratings.create_index("createdAt")

        logger.info("MongoDB indexes created successfully.")
    except Exception as e:
        logger.error(f"Failed to create MongoDB indexes: {e}")
