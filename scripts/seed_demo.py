#!/usr/bin/env python3
"""
Demo Seed Script

Creates an HR user, two jobs and three students, then walks them
through the lifecycle:
- Bob     -> Rejected
- Alice   -> Round1 (test assigned, if her score clears the threshold)
- Charlie -> Talent pool

Prints a bearer token per user for trying the API.

Usage: python scripts/seed_demo.py [--reset]
"""

import argparse

from hireflow.core.auth import create_access_token
from hireflow.core.errors import HireflowError
from hireflow.core.logging import configure_logging
from hireflow.db.mongodb import COLLECTIONS, get_mongo_db, init_mongo_indexes
from hireflow.models.records import CandidateSignal, PersonalInfo, Role
from hireflow.services.application_service import get_application_service
from hireflow.services.job_service import get_job_service
from hireflow.services.mongo_service import UserDocumentService
from hireflow.services.test_round_service import get_test_round_service

HR_ID = "demo-hr"

JOBS = [
    {
        "title": "Senior Frontend Engineer",
        "description": "We are looking for an experienced Frontend Engineer to build scalable "
                       "web applications using React and TypeScript.",
        "skills": ["React", "TypeScript", "Tailwind CSS", "Redux", "System Design"],
    },
    {
        "title": "Backend Engineer (Node.js)",
        "description": "Join our backend team to build high-performance APIs.",
        "skills": ["Node.js", "Express", "PostgreSQL", "Redis", "Docker"],
    },
]

STUDENTS = [
    {
        "id": "demo-bob", "first": "Bob", "last": "Script", "email": "bob@student.com",
        "phone": "987-654-3210", "skills": ["HTML", "CSS", "Javascript"], "years": 1,
        "education": ["Bootcamp"], "job": 0, "outcome": "reject",
    },
    {
        "id": "demo-alice", "first": "Alice", "last": "Dev", "email": "alice@student.com",
        "phone": "123-456-7890", "skills": ["React", "TypeScript", "Node.js", "Redux", "AWS"], "years": 4,
        "education": ["BS CS"], "job": 0, "outcome": "test",
        "text": "Senior frontend engineer. Built scalable web applications using React, "
                "TypeScript, Redux, Tailwind CSS and system design reviews on AWS.",
    },
    {
        "id": "demo-charlie", "first": "Charlie", "last": "Mid", "email": "charlie@student.com",
        "phone": "555-000-1111", "skills": ["Node.js", "Express", "MongoDB"], "years": 2,
        "education": ["Self Taught"], "job": 1, "outcome": "talent_pool",
    },
]


def main():
    parser = argparse.ArgumentParser(description="Seed HireFlow demo data")
    parser.add_argument("--reset", action="store_true", help="Drop all HireFlow collections first")
    args = parser.parse_args()

    configure_logging()
    db = get_mongo_db()
    if args.reset:
        for name in COLLECTIONS.values():
            db.drop_collection(name)
    init_mongo_indexes(db)

    users = UserDocumentService(db)
    users.sync_user(HR_ID, email="hr@demo.com", claimed_role=Role.hr.value)

    jobs = get_job_service(db)
    job_ids = [
        jobs.create_job(HR_ID, j["title"], j["description"], skills=j["skills"]).id
        for j in JOBS
    ]

    lifecycle = get_application_service(db)
    gate = get_test_round_service(db)

    for s in STUDENTS:
        users.sync_user(s["id"], email=s["email"], claimed_role=Role.student.value)
        users.save_user_resume_signal(
            s["id"],
            CandidateSignal(
                email=s["email"], phone=s["phone"], skills=s["skills"],
                experience_years=s["years"], education=s["education"], resume_text=s.get("text"),
            ),
            file_name=f"{s['first'].lower()}.pdf",
            content_type="application/pdf",
        )

        try:
            application = lifecycle.apply(
                s["id"], job_ids[s["job"]],
                PersonalInfo(first_name=s["first"], last_name=s["last"], email=s["email"], phone=s["phone"]),
            )
            print(f"{s['first']}: applied, fit score {application.ai_score.fit_score}%")

            if s["outcome"] == "reject":
                lifecycle.move(application.id, HR_ID, "Rejected", reason="Skills do not match the role")
            elif s["outcome"] == "talent_pool":
                lifecycle.move(application.id, HR_ID, "TalentPool", reason="Strong backend basics", tags=["node"])
            else:
                result = gate.assign_test(application.id, HR_ID)
                print(f"{s['first']}: test {result['test_round'].id} assigned")
        except HireflowError as e:
            print(f"{s['first']}: {type(e).__name__}: {e.message}")

    print("\nBearer tokens:")
    print(f"  HR      {create_access_token(HR_ID, Role.hr.value, 'hr@demo.com')}")
    for s in STUDENTS:
        print(f"  {s['first']:<7} {create_access_token(s['id'], Role.student.value, s['email'])}")


if __name__ == "__main__":
    main()
