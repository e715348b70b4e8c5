"""
Configuration module - loads all env vars using pydantic-settings.
This is the SINGLE SOURCE OF TRUTH for all config values.

Matching heuristics (skill vocabulary, seniority markers, score weights,
test threshold) live here too so they can be tuned per deployment
without touching the scoring code.
"""

from functools import lru_cache
from typing import Dict, List
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_SKILL_VOCABULARY = [
    "Javascript", "Typescript", "React", "Node.js", "Python", "Java", "C++",
    "AWS", "Docker", "Kubernetes", "SQL", "NoSQL", "MongoDB",
]

DEFAULT_STOP_WORDS = [
    "about", "above", "after", "also", "been", "being", "build", "both",
    "candidate", "could", "each", "from", "have", "into", "join", "just",
    "like", "looking", "more", "most", "must", "other", "over", "role",
    "should", "skills", "some", "such", "team", "than", "that", "their",
    "them", "then", "there", "these", "they", "this", "those", "using",
    "very", "were", "what", "when", "where", "which", "while", "will",
    "with", "work", "would", "years", "your", "experience", "experienced",
    "strong", "good", "knowledge", "ability", "able", "plus", "preferred",
    "required", "requirements", "responsibilities", "seeking",
]


class Settings(BaseSettings):
    # MongoDB
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db: str = "hireflow"

    # Identity provider tokens (HS256 shared secret)
    jwt_secret_key: str = "change-this-secret"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60 * 24

    # App
    debug: bool = True
    log_level: str = "INFO"

    # Resume upload size band (bytes)
    resume_min_bytes: int = 30 * 1024
    resume_max_bytes: int = 50 * 1024

    # Resume signal heuristics
    skill_vocabulary: List[str] = DEFAULT_SKILL_VOCABULARY
    seniority_markers: List[str] = ["Senior", "Lead"]
    baseline_experience_years: float = 2
    senior_experience_years: float = 5

    # Fit scoring
    scoring_strategy: str = "keyword_blend"  # keyword_blend | skill_experience | demo
    skill_weight: float = 0.4
    keyword_weight: float = 0.6
    min_keyword_length: int = 4
    stop_words: List[str] = DEFAULT_STOP_WORDS
    demo_score_floor: int = 45
    demo_score_ceiling: int = 95
    learning_link_template: str = "https://www.udemy.com/courses/search/?q={skill}"

    # Lifecycle gates
    test_score_threshold: int = 60
    allow_closed_job_applications: bool = False
    default_round_config: Dict[str, dict] = {
        "round1": {
            "mcq_count": 10,
            "coding_count": 2,
            "duration": 60,
            "passing_score": 70,
        },
        "round2": {
            "enabled": False,
        },
    }

    # Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
