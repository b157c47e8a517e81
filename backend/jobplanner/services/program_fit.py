"""
Program-Fit Scoring - how well a listing suits a user's education program

Score Composition (0-100):
    - Keyword Match (40): share of the program's keywords found in the listing
    - Career Pathway (30): pathway vocabulary hits, full marks at 5+
    - Salary Fit (20): listing pay vs the program's typical salary range
    - Credential Level (10): listing asks for the program's credential level

A listing is a program match when the total reaches MATCH_THRESHOLD.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from jobplanner.schemas.listing import Listing
from jobplanner.schemas.profile import ProgramProfile

MATCH_THRESHOLD = 40

CAREER_PATHWAY_KEYWORDS: Dict[str, List[str]] = {
    "Technology": [
        "software", "developer", "programmer", "engineer", "it", "tech", "computer",
        "web", "data", "network", "support", "helpdesk", "help desk", "analyst",
        "systems", "database", "security", "cloud", "devops", "qa", "testing",
        "frontend", "backend", "full stack", "fullstack", "mobile", "application",
    ],
    "Business": [
        "business", "manager", "management", "analyst", "accounting", "accountant",
        "bookkeeper", "finance", "financial", "marketing", "sales", "administrative",
        "admin", "office", "coordinator", "specialist", "consultant", "project",
        "operations", "hr", "human resources", "payroll", "executive", "assistant",
    ],
    "Healthcare": [
        "health", "healthcare", "medical", "nurse", "nursing", "patient", "clinical",
        "care", "hospital", "doctor", "physician", "pharmacy", "dental", "therapist",
        "technician", "emt", "paramedic", "lab", "diagnostic", "radiology",
    ],
    "Hospitality": [
        "hospitality", "hotel", "restaurant", "food", "service", "guest", "tourism",
        "travel", "event", "catering", "culinary", "chef", "kitchen", "front desk",
        "concierge", "housekeeping", "banquet", "resort",
    ],
    "Creative": [
        "design", "designer", "graphic", "creative", "art", "artist", "visual",
        "media", "video", "photography", "animation", "ui", "ux", "user experience",
        "brand", "content", "writer", "editor", "production",
    ],
    "Education": [
        "education", "teacher", "teaching", "instructor", "tutor", "professor",
        "academic", "school", "training", "learning", "curriculum", "student",
    ],
    "Manufacturing": [
        "manufacturing", "production", "assembly", "warehouse", "logistics",
        "supply chain", "inventory", "quality", "machine", "operator", "technician",
        "maintenance", "cnc", "welding", "fabrication",
    ],
}

CREDENTIAL_LEVEL_KEYWORDS: Dict[str, List[str]] = {
    "certificate": ["entry level", "no degree", "high school", "certificate", "certification"],
    "AS": ["associate", "associate's", "aa", "as", "2 year", "two year", "some college"],
    "BAS": ["bachelor", "bachelor's", "ba", "bs", "4 year", "four year", "degree required", "college degree"],
}


@dataclass
class ProgramFit:
    is_match: bool
    score: int
    keyword_score: int = 0
    pathway_score: int = 0
    salary_score: int = 0
    credential_score: int = 0
    matched_keywords: List[str] = field(default_factory=list)
    reasons: List[str] = field(default_factory=list)
    program_name: Optional[str] = None

    @property
    def match_percentage(self) -> Optional[int]:
        return self.score if self.is_match else None


def _round(value: float) -> int:
    # JavaScript-style Math.round: halves go up
    return int(value + 0.5)


def score_program_fit(listing: Listing, program: ProgramProfile) -> ProgramFit:
    """
    Score a listing against a program.

    Args:
        listing: Normalized listing
        program: The user's program

    Returns:
        ProgramFit with the per-component breakdown
    """
    job_text = " ".join([
        listing.title or "",
        listing.description or "",
        listing.requirements or "",
        listing.company or "",
    ]).lower()
    reasons = []

    # 1. Keyword match (0-40)
    keyword_score = 0
    matched_keywords = [kw for kw in program.keywords if kw.lower() in job_text]
    if program.keywords:
        keyword_score = _round(len(matched_keywords) / len(program.keywords) * 40)
        if matched_keywords:
            reasons.append(f"Skills match: {', '.join(matched_keywords[:3])}")

    # 2. Career pathway (0-30)
    pathway_score = 0
    pathway_keywords = CAREER_PATHWAY_KEYWORDS.get(program.career_pathway or "", [])
    if pathway_keywords:
        hits = sum(1 for kw in pathway_keywords if kw in job_text)
        pathway_score = _round(min(1.0, hits / 5) * 30)
        if hits >= 2:
            reasons.append(f"{program.career_pathway} career pathway match")

    # 3. Salary fit (0-20)
    job_salary = listing.annual_salary_min()
    if job_salary and program.typical_salary_min and program.typical_salary_max:
        if program.typical_salary_min <= job_salary <= program.typical_salary_max * 1.5:
            salary_score = 20
            reasons.append("Salary matches program expectations")
        elif job_salary >= program.typical_salary_min * 0.8:
            salary_score = 15
        elif job_salary >= program.typical_salary_min * 0.6:
            salary_score = 10
        else:
            salary_score = 0
    else:
        salary_score = 10  # Neutral when salary data is missing

    # 4. Credential level (0-10)
    credential_keywords = CREDENTIAL_LEVEL_KEYWORDS.get(program.program_type, [])
    requires_degree = "bachelor" in job_text or "degree required" in job_text
    if any(kw in job_text for kw in credential_keywords):
        credential_score = 10
        reasons.append(f"{program.program_type.upper()} credential matches")
    elif not requires_degree and program.program_type == "certificate":
        credential_score = 8
    elif not requires_degree:
        credential_score = 5
    else:
        credential_score = 0

    total = keyword_score + pathway_score + salary_score + credential_score
    return ProgramFit(
        is_match=total >= MATCH_THRESHOLD,
        score=total,
        keyword_score=keyword_score,
        pathway_score=pathway_score,
        salary_score=salary_score,
        credential_score=credential_score,
        matched_keywords=matched_keywords,
        reasons=reasons,
        program_name=program.program_name,
    )
