"""
Database module - MongoDB connection.
"""
from hireflow.db.mongodb import get_mongo_db, get_collection, test_mongo_connection

__all__ = [
    "get_mongo_db",
    "get_collection",
    "test_mongo_connection"
]
