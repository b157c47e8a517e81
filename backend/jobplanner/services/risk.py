"""
Listing Risk Scoring - Deterministic scam detection

Rule-based screening of a listing's text and metadata. No external calls,
so the same listing always produces the same assessment.

Rule tiers and weights:
    - Blocking (40 each): payment requests, check cashing, crypto pay,
      reshipping, MLM, sensitive personal data upfront
    - Strong warning (25 each): vague description, missing company,
      unrealistic salary, suspicious apply URL, income guarantees, ...
    - Mild warning (10 each): personal e-mail, P.O. box, urgency, ...

Severity:
    danger  - at least one blocking rule fired (never shown to users)
    warning - any other rule fired
    clean   - nothing fired

Score: sum of weights, capped at 100 (higher = more suspicious).
"""

import re
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Pattern, Union

from jobplanner.schemas.listing import Listing

BLOCKING_WEIGHT = 40
STRONG_WEIGHT = 25
MILD_WEIGHT = 10

# Median annual salaries (USD) by title keyword, used for the unrealistic salary rule
MEDIAN_SALARIES = {
    "customer service": 35000,
    "retail": 30000,
    "warehouse": 38000,
    "administrative": 42000,
    "receptionist": 35000,
    "data entry": 38000,
    "sales": 50000,
    "marketing": 55000,
    "accounting": 60000,
    "software": 95000,
    "developer": 90000,
    "engineer": 85000,
    "manager": 70000,
    "director": 100000,
    "executive": 150000,
    "nurse": 75000,
    "medical": 65000,
    "teacher": 50000,
}
DEFAULT_MEDIAN_SALARY = 45000

SUSPICIOUS_URL_PATTERNS = [
    re.compile(r"\.(xyz|top|work|click|link)$", re.I),
    re.compile(r"bit\.ly|tinyurl|t\.co", re.I),
    re.compile(r"\d{5,}"),
]

PERSONAL_EMAIL = re.compile(r"[\w.+-]+@(gmail|yahoo|hotmail|outlook|aol|mail)\.", re.I)

GENERIC_COMPANY_NAMES = {"company", "corporation", "inc", "llc", "business", "enterprise", "group"}


@dataclass
class RiskRule:
    id: str
    description: str
    weight: int
    blocking: bool
    test: Union[Pattern, Callable[[Listing], bool]]


@dataclass
class RiskFlag:
    id: str
    description: str
    weight: int
    blocking: bool
    matched: Optional[str] = None


@dataclass
class RiskAssessment:
    severity: str
    reasons: List[str]
    score: int
    flags: List[RiskFlag] = field(default_factory=list)


def get_median_salary(title: str) -> int:
    lower_title = (title or "").lower()
    for keyword, salary in MEDIAN_SALARIES.items():
        if keyword in lower_title:
            return salary
    return DEFAULT_MEDIAN_SALARY


def _annual_salary_max(listing: Listing) -> Optional[float]:
    if not listing.salary_max:
        return None
    if listing.salary_period == "hourly":
        return listing.salary_max * 2080
    return listing.salary_max


def _vague_description(listing: Listing) -> bool:
    return len((listing.description or "").split()) < 50


def _no_company(listing: Listing) -> bool:
    return len((listing.company or "").strip()) < 2


def _unrealistic_salary(listing: Listing) -> bool:
    salary_max = _annual_salary_max(listing)
    if not salary_max or not listing.title:
        return False
    return salary_max > get_median_salary(listing.title) * 2.5


def _suspicious_url(listing: Listing) -> bool:
    url = listing.apply_url or ""
    return any(pattern.search(url) for pattern in SUSPICIOUS_URL_PATTERNS)


def _personal_email(listing: Listing) -> bool:
    return PERSONAL_EMAIL.search(_listing_text(listing)) is not None


def _missing_requirements(listing: Listing) -> bool:
    return len(listing.requirements or "") < 20


def _generic_company(listing: Listing) -> bool:
    company = (listing.company or "").strip().lower().rstrip(".")
    return company in GENERIC_COMPANY_NAMES


def _rule(id: str, description: str, tier: str, test) -> RiskRule:
    weight = {"blocking": BLOCKING_WEIGHT, "strong": STRONG_WEIGHT, "mild": MILD_WEIGHT}[tier]
    if isinstance(test, str):
        test = re.compile(test, re.I)
    return RiskRule(id=id, description=description, weight=weight, blocking=tier == "blocking", test=test)


RULES: List[RiskRule] = [
    # Blocking
    _rule("upfront_payment", "Requests upfront payment or fees", "blocking",
          r"(pay|send|wire|transfer|deposit).{0,30}(fee|money|upfront|advance)"),
    _rule("check_cashing", "Involves check cashing scheme", "blocking",
          r"(cash|deposit).{0,20}(check|cheque|money order)"),
    _rule("cryptocurrency_payment", "Payment in cryptocurrency", "blocking",
          r"(pay|paid|payment|salary).{0,30}(bitcoin|crypto|btc|ethereum|usdt)"),
    _rule("money_transfer_service", "Uses money transfer services", "blocking",
          r"(western union|moneygram|wire transfer|money transfer)"),
    _rule("bank_account_request", "Requests bank account details upfront", "blocking",
          r"(your bank account|bank details|routing number|account number).{0,30}(send|provide|share)"),
    _rule("reshipping_scam", "Reshipping/package forwarding scam", "blocking",
          r"(reship|re-ship|forward packages|receive packages).{0,30}(home|address)"),
    _rule("mlm_pyramid", "Multi-level marketing or pyramid scheme", "blocking",
          r"(multi.?level|\bmlm\b|network marketing|pyramid|downline|upline)"),
    _rule("personal_info_upfront", "Requests sensitive personal info before interview", "blocking",
          r"(\bssn\b|social security|passport|driver.?s? license).{0,30}(before|upfront|to apply)"),
    # Strong warnings
    _rule("vague_description", "Very vague job description (less than 50 words)", "strong",
          _vague_description),
    _rule("no_company_info", "No company name provided", "strong", _no_company),
    _rule("unrealistic_salary", "Salary significantly above market rate (2.5x+ median)", "strong",
          _unrealistic_salary),
    _rule("work_from_home_emphasis", "Heavy emphasis on work-from-home opportunity", "strong",
          r"(work from home|earn from home|make money from home|home.?based opportunity)"),
    _rule("too_good_to_be_true", "Claims that sound too good to be true", "strong",
          r"(unlimited earning|unlimited income|no experience needed|no experience required"
          r"|easy money|get rich|quick cash)"),
    _rule("guaranteed_income", "Unrealistic income guarantees", "strong",
          r"(guaranteed.{0,20}(income|salary|pay)|make \$\d{3,}.{0,10}(day|week|hour))"),
    _rule("suspicious_url", "Suspicious application URL", "strong", _suspicious_url),
    _rule("interview_fee", "Mentions fees for interview or training", "strong",
          r"(interview|training|orientation).{0,30}(fee|cost|pay|charge)"),
    # Mild warnings
    _rule("personal_email", "Uses personal email domain instead of company email", "mild",
          _personal_email),
    _rule("po_box_address", "Uses P.O. Box instead of physical address", "mild", r"p\.?o\.?\s*box"),
    _rule("missing_requirements", "Missing or very brief job requirements", "mild",
          _missing_requirements),
    _rule("urgency_language", "Uses high-urgency language", "mild",
          r"(urgent|immediately|right away|\basap\b|start today|hiring now|immediate start)"),
    _rule("vague_company_name", "Generic or vague company name", "mild", _generic_company),
    _rule("contact_before_apply", "Requests contact via messaging app before applying", "mild",
          r"(text|call|whatsapp|telegram).{0,30}(before applying|to apply|for more info)"),
    _rule("commission_only", "Commission-only compensation", "mild",
          r"commission.?only|100%.?commission|no base.?(salary|pay)"),
    _rule("personal_vehicle_required", "Requires personal vehicle (common in delivery scams)", "mild",
          r"(must have|need|require).{0,20}(your own|personal|reliable).{0,10}(car|vehicle|transportation)"),
]


def _listing_text(listing: Listing) -> str:
    return " ".join([
        listing.title or "",
        listing.company or "",
        listing.description or "",
        listing.requirements or "",
        listing.location or "",
    ])


def score_risk(listing: Listing) -> RiskAssessment:
    """
    Screen a listing against every rule.

    Args:
        listing: Normalized listing

    Returns:
        RiskAssessment with severity, reasons (rule descriptions in rule
        order), score 0-100 and the individual flags
    """
    text = _listing_text(listing)
    flags: List[RiskFlag] = []

    for rule in RULES:
        if isinstance(rule.test, re.Pattern):
            match = rule.test.search(text)
            if match:
                flags.append(RiskFlag(rule.id, rule.description, rule.weight, rule.blocking, match.group(0)))
        elif rule.test(listing):
            flags.append(RiskFlag(rule.id, rule.description, rule.weight, rule.blocking))

    if any(flag.blocking for flag in flags):
        severity = "danger"
    elif flags:
        severity = "warning"
    else:
        severity = "clean"

    score = min(100, sum(flag.weight for flag in flags))
    return RiskAssessment(
        severity=severity,
        reasons=[flag.description for flag in flags],
        score=score,
        flags=flags,
    )
