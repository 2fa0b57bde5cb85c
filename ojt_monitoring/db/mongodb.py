"""
MongoDB Connection Utility

Collections:
- users, companies, dailytimerecords
- documents, tasks, announcements, requirements
- conversations, messages

Field names are camelCase to match the web client.
"""
from pymongo import ASCENDING, DESCENDING, GEOSPHERE, MongoClient
from pymongo.collection import Collection
from pymongo.database import Database

from ojt_monitoring.core.config import get_settings
from ojt_monitoring.core.logging_config import logger

settings = get_settings()

# Global client (connection pooling handled internally by pymongo)
_client: MongoClient = None
_db: Database = None


def get_mongo_client() -> MongoClient:
    """Get or create MongoDB client (singleton pattern)"""
    global _client
    if _client is None:
        _client = MongoClient(settings.mongodb_uri)
    return _client


def get_mongo_db() -> Database:
    """Get the application database"""
    global _db
    if _db is None:
        client = get_mongo_client()
        _db = client[settings.mongodb_db]
    return _db


def get_collection(name: str) -> Collection:
    """Get a specific collection. Use the COLLECTIONS constants for names."""
    db = get_mongo_db()
    return db[name]


def test_mongo_connection() -> bool:
    """
    Test if MongoDB is reachable.
    Returns True if connection successful, False otherwise.
    """
    try:
        client = get_mongo_client()
        client.admin.command("ping")
        return True
    except Exception as e:
        logger.warning(f"MongoDB connection failed: {e}")
        return False


# Collection name constants (avoid typos)
COLLECTIONS = {
    "users": "users",
    "companies": "companies",
    "dtr": "dailytimerecords",
    "documents": "documents",
    "tasks": "tasks",
    "announcements": "announcements",
    "requirements": "requirements",
    "conversations": "conversations",
    "messages": "messages",
}


def init_mongo_indexes():
    """
    Create indexes for better query performance.
    Call this once during app startup.
    """
    db = get_mongo_db()

    users = db[COLLECTIONS["users"]]
    # Email is unique among active users only; archived users keep a mangled copy
    users.create_index(
        "email",
        unique=True,
        partialFilterExpression={"isArchived": False},
        name="email_unique_active",
    )
    users.create_index("userName")
    users.create_index([("role", ASCENDING), ("program", ASCENDING)])
    users.create_index("metadata.company")

    db[COLLECTIONS["companies"]].create_index([("safeZone", GEOSPHERE)], sparse=True)
    db[COLLECTIONS["companies"]].create_index("contactPerson", unique=True)

    db[COLLECTIONS["dtr"]].create_index([("user", ASCENDING), ("date", DESCENDING)])

    db[COLLECTIONS["documents"]].create_index([("student", ASCENDING), ("isArchived", ASCENDING)])
    db[COLLECTIONS["tasks"]].create_index("assignedTo")
    db[COLLECTIONS["announcements"]].create_index([("targetProgram", ASCENDING), ("createdAt", DESCENDING)])

    db[COLLECTIONS["conversations"]].create_index("participants")
    db[COLLECTIONS["conversations"]].create_index([("type", ASCENDING), ("program", ASCENDING)])
    db[COLLECTIONS["messages"]].create_index([("receiver", ASCENDING), ("sentAt", ASCENDING)])
    db[COLLECTIONS["messages"]].create_index("sender")

    logger.info("MongoDB indexes created successfully")
