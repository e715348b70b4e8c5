#!/usr/bin/env python3
"""
Connection Test Script

Run this to verify the MongoDB connection and the active settings.
Usage: python scripts/check_connections.py
"""

from hireflow.core.config import get_settings
from hireflow.db.mongodb import test_mongo_connection


def main():
    settings = get_settings()
    print("=" * 50)
    print("HIREFLOW - CONNECTION TEST")
    print("=" * 50)

    print("\n[1] Testing MongoDB...")
    print(f"    URI: {settings.mongodb_uri}")
    print(f"    Database: {settings.mongodb_db}")
    if test_mongo_connection():
        print("    MongoDB: CONNECTED")
    else:
        print("    MongoDB: FAILED")

    print("\n[2] Matching settings...")
    print(f"    Scoring strategy: {settings.scoring_strategy}")
    print(f"    Test threshold: {settings.test_score_threshold}%")
    print(f"    Resume size band: {settings.resume_min_bytes // 1024}-{settings.resume_max_bytes // 1024} KB")
    print(f"    Skill vocabulary: {', '.join(settings.skill_vocabulary)}")

    print("\n" + "=" * 50)
    print("Connection test complete!")
    print("=" * 50)


if __name__ == "__main__":
    main()
