"""
Resume Signal Service - heuristic extraction of candidate signal.

PURPOSE:
Turn raw resume bytes into a CandidateSignal:
1. Decode bytes to text (PDF / DOCX / TXT)
2. Find the first email and phone number
3. Match skills against the configured vocabulary
4. Guess experience years from seniority markers

No NER, no layout analysis: this is a deliberate heuristic. It never
touches the network or disk and never fails the upload - a parser
error degrades to reading the raw bytes as text.
"""

import logging
import re
from typing import Iterable, List, Optional

from hireflow.core.config import get_settings
from hireflow.core.errors import ExtractionDegraded
from hireflow.models.records import CandidateSignal
from hireflow.utils.file_upload import extract_text

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._-]+@[a-zA-Z0-9._-]+\.[a-zA-Z0-9_-]+")
PHONE_PATTERN = re.compile(r"\+?[\d\s-]{10,}")


def find_email(text: str) -> Optional[str]:
    match = EMAIL_PATTERN.search(text)
    return match.group(0) if match else None


def find_phone(text: str) -> Optional[str]:
    """
    First run of 10+ digits/spaces/dashes (optionally +prefixed).

    The loose pattern also swallows surrounding whitespace, so the match
    is trimmed; a run that is all separators is ignored.
    """
    for match in PHONE_PATTERN.finditer(text):
        candidate = match.group(0).strip(" -\t\r\n")
        if sum(ch.isdigit() for ch in candidate) >= 10:
            return candidate
    return None


def find_skills(text: str, vocabulary: Iterable[str]) -> List[str]:
    """
    Vocabulary entries contained in the text (case-insensitive).

    Returned in vocabulary order, de-duplicated case-insensitively.
    """
    lowered = text.lower()
    found = []
    seen = set()
    for skill in vocabulary:
        key = skill.lower()
        if not key or key in seen:
            continue
        if key in lowered:
            found.append(skill)
            seen.add(key)
    return found


def estimate_experience_years(text: str, markers: Iterable[str], baseline: float, senior: float) -> float:
    """Baseline years, bumped to the senior value when a seniority marker shows up."""
    lowered = text.lower()
    if any(marker.lower() in lowered for marker in markers if marker):
        return senior
    return baseline


class ResumeSignalExtractor:
    """
    Extracts a CandidateSignal from resume bytes.

    The vocabulary and heuristics come from settings unless passed in,
    so tests can swap in their own vocabulary.
    """

    def __init__(
        self,
        vocabulary: Optional[List[str]] = None,
        seniority_markers: Optional[List[str]] = None,
        baseline_years: Optional[float] = None,
        senior_years: Optional[float] = None,
    ):
        settings = get_settings()
        self.vocabulary = list(vocabulary if vocabulary is not None else settings.skill_vocabulary)
        self.seniority_markers = list(
            seniority_markers if seniority_markers is not None else settings.seniority_markers
        )
        self.baseline_years = baseline_years if baseline_years is not None else settings.baseline_experience_years
        self.senior_years = senior_years if senior_years is not None else settings.senior_experience_years

    def extract(
        self,
        file_bytes: bytes,
        declared_mime_type: Optional[str] = None,
        file_name: Optional[str] = None,
    ) -> CandidateSignal:
        """
        Build a signal from raw resume bytes.

        Args:
            file_bytes: Raw upload content
            declared_mime_type: Content type sent by the client
            file_name: Original filename (used when the mime type is vague)

        Returns:
            CandidateSignal; degraded=True if text extraction fell back
        """
        degraded = False
        try:
            text = extract_text(file_bytes or b"", declared_mime_type, file_name)
        except ExtractionDegraded as e:
            logger.warning("Resume extraction degraded for %s: %s", file_name or "upload", e.message)
            text = (file_bytes or b"").decode("utf-8", errors="ignore")
            degraded = True

        return self.extract_from_text(text, degraded=degraded)

    def extract_from_text(self, text: str, degraded: bool = False) -> CandidateSignal:
        """Signal from already-decoded text."""
        text = text or ""
        return CandidateSignal(
            email=find_email(text),
            phone=find_phone(text),
            skills=find_skills(text, self.vocabulary),
            experience_years=estimate_experience_years(
                text, self.seniority_markers, self.baseline_years, self.senior_years
            ),
            resume_text=text or None,
            degraded=degraded,
        )


# ============================================================
# CONVENIENCE FUNCTIONS
# ============================================================

def get_resume_extractor() -> ResumeSignalExtractor:
    """Get resume signal extractor instance."""
    return ResumeSignalExtractor()
