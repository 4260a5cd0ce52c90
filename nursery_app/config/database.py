"""
Database configuration and connection management for MongoDB
"""
import asyncio
import logging
from typing import Optional

import pymongo
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
import os
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


class DatabaseConfig:
    """MongoDB database configuration.

    The client is created lazily on first use and reused for the life of
    the process. Handlers never touch this object directly; they receive a
    database through the ``get_db_ops`` dependency.
    """

    def __init__(self):
        self.MONGO_URI = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
        self.DATABASE_NAME = os.getenv("MONGODB_DB_NAME", "nursery_app")
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None
        self._lock = asyncio.Lock()

    async def get_database(self) -> AsyncIOMotorDatabase:
        """Return the cached database, connecting on first call"""
        if self.database is not None:
            return self.database

        async with self._lock:
            # Another coroutine may have connected while we waited
            if self.database is not None:
                return self.database
            await self.connect_db()
        return self.database

    async def connect_db(self):
        """Connect to MongoDB"""
        try:
            self.client = AsyncIOMotorClient(self.MONGO_URI)
            self.database = self.client[self.DATABASE_NAME]
            logger.info("✅ Connected to MongoDB: %s", self.DATABASE_NAME)
        except Exception as e:
            logger.error("❌ Error connecting to MongoDB: %s", e)
            self.client = None
            self.database = None
            raise

    async def close_db(self):
        """Close MongoDB connection"""
        if self.client:
            self.client.close()
            self.client = None
            self.database = None
            logger.info("✅ MongoDB connection closed")


# Global database instance
db_config = DatabaseConfig()


# Collection names
class Collections:
    VISIT_BOOKINGS = "visit_bookings"
    CLUB_BOOKINGS = "club_bookings"
    DEPOSIT_PAYMENTS = "deposit_payments"
    WAITLIST = "waitlist"
    AVAILABILITY_REQUESTS = "availability_requests"
    CONTACT_INQUIRIES = "contact_inquiries"
    JOB_APPLICATIONS = "job_applications"

    # Enrolment paperwork
    APPLICATIONS = "applications"
    ABOUT_ME_FORMS = "aboutme_forms"
    CONSENT_FORMS = "consent_forms"
    MEDICAL_FORMS = "medical_forms"
    FUNDING_DECLARATIONS = "funding_declarations"
    CHANGE_DETAILS = "change_details"


# Unique indexes backing the read-then-write duplicate checks
INDEXES = {
    Collections.VISIT_BOOKINGS: [
        {
            "keys": [("email", pymongo.ASCENDING), ("visitDate", pymongo.ASCENDING)],
            "name": "unique_email_per_day",
            "unique": True,
        },
        {
            "keys": [("visitDate", pymongo.ASCENDING), ("visitTime", pymongo.ASCENDING)],
            "name": "unique_visit_slot",
            "unique": True,
        },
    ],
}
