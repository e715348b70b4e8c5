"""
MongoDB Connection Utility

MongoDB stores every HireFlow document:
- users (synced from the identity provider, with the last resume signal)
- jobs (requirements + round config)
- applications (status, embedded fit score, round summaries, timeline)
- test_rounds (anti-cheat counters, answers)
- anti_cheat_logs (one document per telemetry event)

Each application is updated as a whole document, so single-document
atomicity is all the lifecycle needs.
"""
import logging

from pymongo import ASCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.database import Database

from hireflow.core.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

# Global client (connection pooling handled internally by pymongo)
_client: MongoClient = None
_db: Database = None


def get_mongo_client() -> MongoClient:
    """Get or create MongoDB client (singleton pattern)"""
    global _client
    if _client is None:
        _client = MongoClient(settings.mongodb_uri, tz_aware=False)
    return _client


def get_mongo_db() -> Database:
    """Get the hireflow database"""
    global _db
    if _db is None:
        client = get_mongo_client()
        _db = client[settings.mongodb_db]
    return _db


def get_collection(name: str, db: Database = None) -> Collection:
    """
    Get a specific collection.

    Pass db to work against another database handle (tests hand in a
    mongomock database here).
    """
    db = db if db is not None else get_mongo_db()
    return db[name]


def test_mongo_connection() -> bool:
    """
    Test if MongoDB is reachable.
    Returns True if connection successful, False otherwise.
    """
    try:
        client = get_mongo_client()
        # ping command checks connection
        client.admin.command('ping')
        return True
    except Exception as e:
        logger.warning("MongoDB connection failed: %s", e)
        return False


# Collection name constants (avoid typos)
COLLECTIONS = {
    "users": "users",
    "jobs": "jobs",
    "applications": "applications",
    "test_rounds": "test_rounds",
    "anti_cheat_logs": "anti_cheat_logs",
}


def init_mongo_indexes(db: Database = None):
    """
    Create indexes for lookups and uniqueness.
    Call this once during app startup.
    """
    db = db if db is not None else get_mongo_db()

    db[COLLECTIONS["users"]].create_index("subject_id", unique=True)

    db[COLLECTIONS["jobs"]].create_index([("posted_by", ASCENDING), ("created_at", -1)])

    # One live application per (student, job). Withdrawn applications flip
    # is_active to False and drop out of the index, so re-applying works.
    db[COLLECTIONS["applications"]].create_index(
        [("student_id", ASCENDING), ("job_id", ASCENDING)],
        unique=True,
        partialFilterExpression={"is_active": True},
        name="uniq_active_application",
    )
    db[COLLECTIONS["applications"]].create_index([("job_id", ASCENDING), ("applied_at", -1)])

    db[COLLECTIONS["test_rounds"]].create_index("application_id", unique=True)
    db[COLLECTIONS["anti_cheat_logs"]].create_index([("test_id", ASCENDING), ("timestamp", ASCENDING)])

    logger.info("MongoDB indexes created successfully")
