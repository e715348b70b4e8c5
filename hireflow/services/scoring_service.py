"""
Fit Scoring Service

PURPOSE:
Score how well a candidate signal fits a job's requirements.

STRATEGIES (pick one with SCORING_STRATEGY, never mix them):
- keyword_blend    (default) 40% skill match + 60% keyword match
- skill_experience 70% skill match + 30% experience (capped at 50)
- demo             deterministic hash of (student_id, job_id), clamped
                   into [DEMO_SCORE_FLOOR, DEMO_SCORE_CEILING]

Every strategy returns the same FitScore shape: composite + sub-scores,
matched/missing skills, advisory flags and learning links for the gaps.
Scoring is a pure function of its inputs.
"""

import hashlib
import math
import re
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional, Tuple
from urllib.parse import quote

from hireflow.core.config import Settings, get_settings
from hireflow.models.records import (
    CandidateSignal,
    FitScore,
    JobRequirements,
    LearningLink,
    ScoreExplanation,
)

FLAG_MISSING_EMAIL = "Missing Email"
FLAG_NO_SKILLS = "No Skills Detected"

TOKEN_PATTERN = re.compile(r"[a-z0-9][a-z0-9+#./-]*")

# Tech terms whose spelling varies; any variant found as a whole token in
# the candidate text counts as a hit ("node" is a token of "node.js",
# "ts" is not a token of "projects").
TECH_TERM_VARIANTS: Dict[str, Tuple[str, ...]] = {
    "node.js": ("node.js", "nodejs", "node"),
    "node": ("node.js", "nodejs", "node"),
    "react": ("react", "react.js", "reactjs"),
    "react.js": ("react", "react.js", "reactjs"),
    "vue.js": ("vue.js", "vuejs", "vue"),
    "next.js": ("next.js", "nextjs"),
    "express.js": ("express.js", "expressjs", "express"),
    "javascript": ("javascript", "js"),
    "typescript": ("typescript", "ts"),
    "machine learning": ("machine learning", "ml"),
    "kubernetes": ("kubernetes", "k8s"),
    "postgresql": ("postgresql", "postgres"),
    "mongodb": ("mongodb", "mongo"),
    "rest api": ("rest api", "restful", "rest"),
    "ci/cd": ("ci/cd", "cicd"),
    "c++": ("c++", "cpp"),
    "c#": ("c#", "csharp"),
}


def round_half_up(value: float) -> int:
    """0.5 always rounds up (Python's round() would go to even)."""
    return int(math.floor(value + 0.5))


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


# ============================================================
# SKILL MATCHING
# ============================================================

def _unique_lower(skills: Iterable[str]) -> List[str]:
    """Lower-case and de-duplicate, keeping first-seen order."""
    seen = []
    for skill in skills:
        key = skill.strip().lower()
        if key and key not in seen:
            seen.append(key)
    return seen


def compute_skill_match_percentage(
    candidate_skills: List[str],
    required_skills: List[str]
) -> float:
    """
    Compute percentage of required skills the candidate has.

    Uses case-insensitive matching.

    Returns:
        Float between 0 and 100 (0 when the job lists no skills)
    """
    required = _unique_lower(required_skills)
    if not required:
        return 0.0

    candidate = set(_unique_lower(candidate_skills))
    matches = [s for s in required if s in candidate]

    return (len(matches) / len(required)) * 100


def explain_skills(candidate_skills: List[str], required_skills: List[str]) -> ScoreExplanation:
    """Matched / missing job skills (lower-cased, job order)."""
    candidate = set(_unique_lower(candidate_skills))
    required = _unique_lower(required_skills)
    return ScoreExplanation(
        matched_skills=[s for s in required if s in candidate],
        missing_skills=[s for s in required if s not in candidate],
    )


# ============================================================
# KEYWORD MATCHING
# ============================================================

def extract_job_keywords(
    job: JobRequirements,
    stop_words: Iterable[str],
    min_length: int = 4
) -> List[str]:
    """
    Salient tokens from the job description plus the required skills.

    Description tokens must be at least min_length long, not numeric and
    not stop words. Required skills are folded in whatever their length
    ("aws", "sql").
    """
    stop = {w.lower() for w in stop_words}
    keywords: List[str] = []

    for raw in TOKEN_PATTERN.findall((job.description_text or "").lower()):
        token = raw.strip(".-/")
        if len(token) < min_length or token in stop or token.isdigit():
            continue
        if token not in keywords:
            keywords.append(token)

    for skill in _unique_lower(job.skills):
        if skill not in keywords:
            keywords.append(skill)

    return keywords


def build_evidence_text(signal: CandidateSignal) -> str:
    """
    Text the keywords are searched in.

    The decoded resume when we have it, otherwise a reconstruction from
    the structured fields.
    """
    if signal.resume_text:
        return signal.resume_text.lower()

    parts = list(signal.skills)
    parts.append(f"{signal.experience_years:g} years experience")
    parts.extend(signal.education)
    return " ".join(parts).lower()


def _token_present(term: str, evidence: str) -> bool:
    pattern = r"(?<![a-z0-9])" + re.escape(term) + r"(?![a-z0-9])"
    return re.search(pattern, evidence) is not None


def keyword_found(keyword: str, evidence: str) -> bool:
    """Whole-token match of the keyword or, for curated tech terms, any variant."""
    variants = TECH_TERM_VARIANTS.get(keyword, (keyword,))
    return any(_token_present(v, evidence) for v in variants)


def compute_keyword_match_percentage(keywords: List[str], evidence: str) -> float:
    """Share of job keywords present in the evidence, 0-100."""
    if not keywords:
        return 0.0
    found = sum(1 for k in keywords if keyword_found(k, evidence))
    return min(100.0, (found / len(keywords)) * 100)


# ============================================================
# SCORER STRATEGIES
# ============================================================

class FitScorer(ABC):
    """
    Scoring strategy interface.

    Subclasses compute (fit, skill, keyword); the shared explanation,
    flags and learning links are added here.
    """

    name = "base"

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    @abstractmethod
    def compute(
        self,
        signal: CandidateSignal,
        job: JobRequirements,
        student_id: Optional[str] = None,
        job_id: Optional[str] = None,
    ) -> Tuple[int, int, int]:
        """Return (fit_score, skill_match, keyword_match)."""

    def score(
        self,
        signal: CandidateSignal,
        job: JobRequirements,
        student_id: Optional[str] = None,
        job_id: Optional[str] = None,
    ) -> FitScore:
        fit, skill, keyword = self.compute(signal, job, student_id=student_id, job_id=job_id)
        explanation = explain_skills(signal.skills, job.skills)

        return FitScore(
            fit_score=clamp(fit, 0, 100),
            skill_match=clamp(skill, 0, 100),
            keyword_match=clamp(keyword, 0, 100),
            overall_rank=0,
            strategy=self.name,
            flags=self.flags_for(signal),
            explanation=explanation,
            learning_links=self.learning_links(explanation.missing_skills),
        )

    @staticmethod
    def flags_for(signal: CandidateSignal) -> List[str]:
        flags = []
        if not signal.email:
            flags.append(FLAG_MISSING_EMAIL)
        if not signal.skills:
            flags.append(FLAG_NO_SKILLS)
        return flags

    def learning_links(self, missing_skills: List[str]) -> List[LearningLink]:
        template = self.settings.learning_link_template
        return [
            LearningLink(skill=skill, url=template.format(skill=quote(skill, safe="")))
            for skill in missing_skills
        ]


class KeywordBlendFitScorer(FitScorer):
    """Canonical scorer: weighted skill match + job keyword coverage."""

    name = "keyword_blend"

    def compute(self, signal, job, student_id=None, job_id=None):
        skill = round_half_up(compute_skill_match_percentage(signal.skills, job.skills))

        keywords = extract_job_keywords(
            job, self.settings.stop_words, self.settings.min_keyword_length
        )
        keyword = round_half_up(
            compute_keyword_match_percentage(keywords, build_evidence_text(signal))
        )

        fit = round_half_up(
            skill * self.settings.skill_weight + keyword * self.settings.keyword_weight
        )
        return fit, skill, keyword


class SkillExperienceFitScorer(FitScorer):
    """
    Legacy scorer: 70% skill match, 30% experience.

    Experience is 10 points per year, capped at 50; it occupies the
    keyword_match slot (historically called experienceMatch).
    """

    name = "skill_experience"

    def compute(self, signal, job, student_id=None, job_id=None):
        skill_pct = compute_skill_match_percentage(signal.skills, job.skills)
        exp_score = min(signal.experience_years * 10, 50)
        fit = round_half_up(skill_pct * 0.7 + exp_score * 0.3)
        return fit, round_half_up(skill_pct), round_half_up(exp_score)


class DemoFitScorer(FitScorer):
    """
    Demo/fixture scorer keyed only by (student_id, job_id).

    Same ids always give the same numbers. Not for production ranking.
    """

    name = "demo"

    def compute(self, signal, job, student_id=None, job_id=None):
        if student_id is None or job_id is None:
            raise ValueError("DemoFitScorer needs both student_id and job_id")

        digest = hashlib.sha256(f"{student_id}:{job_id}".encode()).digest()
        floor = self.settings.demo_score_floor
        ceiling = self.settings.demo_score_ceiling

        fit = floor + int.from_bytes(digest[:4], "big") % (ceiling - floor + 1)
        skill = clamp(fit + digest[4] % 21 - 10, 0, 100)
        keyword = clamp(fit + digest[5] % 21 - 10, 0, 100)
        return clamp(fit, floor, ceiling), skill, keyword


SCORERS = {
    KeywordBlendFitScorer.name: KeywordBlendFitScorer,
    SkillExperienceFitScorer.name: SkillExperienceFitScorer,
    DemoFitScorer.name: DemoFitScorer,
}


# ============================================================
# CONVENIENCE FUNCTIONS
# ============================================================

def get_fit_scorer(strategy: Optional[str] = None, settings: Optional[Settings] = None) -> FitScorer:
    """Get the configured scorer (SCORING_STRATEGY unless overridden)."""
    settings = settings or get_settings()
    name = strategy or settings.scoring_strategy
    try:
        scorer_cls = SCORERS[name]
    except KeyError:
        raise ValueError(f"Unknown scoring strategy '{name}'. Options: {', '.join(SCORERS)}")
    return scorer_cls(settings)
