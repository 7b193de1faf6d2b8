"""Employment type classifier for posting text.

Negative directives ("No C2C", "W2 only") are evaluated first and block whole
types before any positive pattern is scored. Submitting a C2C candidate to a
W2-only requisition is the costliest mistake a staffing desk can make, so a
blocking directive always beats a positive keyword.
"""

import re
from typing import Dict, FrozenSet, List, Optional, Pattern, Set, Tuple

from market_signals.domain.models import EmploymentType

from .models import ClassificationResult

C2C = EmploymentType.C2C
W2 = EmploymentType.W2
W2_1099 = EmploymentType.W2_1099
FULLTIME = EmploymentType.FULLTIME
PARTTIME = EmploymentType.PARTTIME
CONTRACT = EmploymentType.CONTRACT

W2_ONLY_LABEL = "W2 only"
W2_ONLY_INFERRED = "W2 only (inferred)"

UNKNOWN_THRESHOLD = 0.3
CONFIDENCE_DIVISOR = 1.5
COMBO_THRESHOLD = 0.5


def _ci(pattern: str) -> Pattern[str]:
    return re.compile(pattern, re.IGNORECASE)


# (pattern, blocked types, label), evaluated in order
NEGATIVE_PATTERNS: List[Tuple[Pattern[str], FrozenSet[EmploymentType], str]] = [
    (_ci(r"\bno\s+C2C\b"), frozenset({C2C}), "NO C2C"),
    (_ci(r"\bnot?\s+(?:accept(?:ing)?|open\s+to)\s+C2C\b"), frozenset({C2C}), "Not accepting C2C"),
    (_ci(r"\bno\s+(?:sub[\s-]?)?vendors?\b"), frozenset({C2C}), "No vendors"),
    (_ci(r"\bno\s+(?:third|3rd)[\s-]?part(?:y|ies)\b"), frozenset({C2C}), "No third party"),
    (_ci(r"\bno\s+sub[\s-]?contract(?:ing|ors?)?\b"), frozenset({C2C}), "No subcontracting"),
    (_ci(r"\bW[\s-]?2\s+only\b"), frozenset({C2C, W2_1099}), W2_ONLY_LABEL),
    (_ci(r"\bdirect[\s-]?hire\s+only\b"), frozenset({C2C, W2_1099, CONTRACT}), "Direct hire only"),
    (_ci(r"\bno\s+(?:agencies|staffing|recruiters)\b"), frozenset({C2C}), "No agencies"),
    (_ci(r"\bno\s+1099\b"), frozenset({W2_1099}), "NO 1099"),
    (_ci(r"\bno\s+corp[\s-]?to[\s-]?corp\b"), frozenset({C2C}), "No corp-to-corp"),
]

# Type order doubles as the tie-break: the first type to reach the top score wins.
POSITIVE_PATTERNS: Dict[EmploymentType, List[Tuple[Pattern[str], float]]] = {
    C2C: [
        (_ci(r"\bC2C\b"), 1.0),
        (_ci(r"\bcorp[\s-]?to[\s-]?corp\b"), 1.0),
        (_ci(r"\bcorporation[\s-]to[\s-]corporation\b"), 1.0),
        (_ci(r"\bC2C\s*/\s*1099\b"), 0.9),
        (_ci(r"\bsub[\s-]?contract(?:or)?\b"), 0.6),
        (_ci(r"\bsub[\s-]?vendor\b"), 0.7),
        (_ci(r"\bindependent.*contractor\b"), 0.5),
        (_ci(r"\b(?:third[\s-]?party|3rd[\s-]?party).*vendor\b"), 0.5),
    ],
    W2: [
        (_ci(r"\bW[\s-]?2\b(?!\s*[/&,]\s*(?:C2C|1099))"), 1.0),
        (_ci(r"\bW-2\s+contract\b"), 0.9),
        (_ci(r"\bw2\s+hourly\b"), 0.9),
    ],
    W2_1099: [
        (_ci(r"\bW[\s-]?2\s*[/&,]\s*1099\b"), 1.0),
        (_ci(r"\b1099\s*[/&,]\s*W[\s-]?2\b"), 1.0),
        (_ci(r"\bW2\s*[/&,]\s*C2C\s*[/&,]\s*1099\b"), 0.9),
        (_ci(r"\bC2C\s*[/&,]\s*W2\b"), 0.8),
        (_ci(r"\b1099\b"), 0.5),
    ],
    FULLTIME: [
        (_ci(r"\bfull[\s-]?time\b"), 0.8),
        (re.compile(r"\bFTE\b"), 0.8),
        (_ci(r"\bpermanent\b"), 0.7),
        (_ci(r"\bdirect[\s-]?hire\b"), 0.9),
        (_ci(r"\bsalaried\b"), 0.6),
    ],
    PARTTIME: [
        (_ci(r"\bpart[\s-]?time\b"), 0.9),
    ],
    CONTRACT: [
        (_ci(r"\bcontract\b"), 0.4),
        (_ci(r"\bcontract[\s-]?to[\s-]?hire\b"), 0.6),
        (_ci(r"\bC2H\b"), 0.6),
        (_ci(r"\bCTH\b"), 0.6),
        (_ci(r"\bcontract[\s-]?to[\s-]?perm\b"), 0.6),
        (_ci(r"\btemp[\s-]?to[\s-]?perm\b"), 0.5),
        (_ci(r"\bfreelance\b"), 0.5),
        (_ci(r"\bhourly\s+rate\b"), 0.3),
    ],
}

_BLOCKS_BY_LABEL: Dict[str, FrozenSet[EmploymentType]] = {
    label: blocks for _, blocks, label in NEGATIVE_PATTERNS
}


def blocked_types_for(label: str) -> FrozenSet[EmploymentType]:
    """Return the types a stored negative-signal label rules out (empty if unknown)."""
    return _BLOCKS_BY_LABEL.get(label, frozenset())


def classify_employment(text: Optional[str]) -> ClassificationResult:
    """Classify posting text into an employment type.

    Args:
        text: Title and description joined by a space; None or empty is allowed

    Returns:
        ClassificationResult. Never raises on string input.
    """
    if not text:
        return ClassificationResult()

    blocked: Set[EmploymentType] = set()
    negative_signals: List[str] = []
    for pattern, blocks, label in NEGATIVE_PATTERNS:
        if pattern.search(text):
            negative_signals.append(label)
            blocked.update(blocks)

    scores: Dict[EmploymentType, float] = {t: 0.0 for t in POSITIVE_PATTERNS}
    matches: Dict[EmploymentType, List[str]] = {t: [] for t in POSITIVE_PATTERNS}

    for employment_type, patterns in POSITIVE_PATTERNS.items():
        if employment_type in blocked:
            continue
        for pattern, weight in patterns:
            match = pattern.search(text)
            if match:
                scores[employment_type] += weight
                matches[employment_type].append(match.group(0))

    # Strong C2C plus strong W2 reads as a mixed W2/1099 arrangement
    if W2_1099 not in blocked and scores[C2C] > COMBO_THRESHOLD and scores[W2] > COMBO_THRESHOLD:
        scores[W2_1099] = max(scores[W2_1099], scores[C2C] + scores[W2])
        matches[W2_1099] = _ordered_union(matches[W2_1099], matches[C2C], matches[W2])

    # An explicit "W2 only" directive is itself evidence of W2
    if W2_ONLY_LABEL in negative_signals and scores[W2] == 0:
        scores[W2] = 1.0
        matches[W2].append(W2_ONLY_INFERRED)

    best_type: Optional[EmploymentType] = None
    best_score = 0.0
    for employment_type, score in scores.items():
        if score > best_score:
            best_type, best_score = employment_type, score

    return ClassificationResult(
        employment_type=best_type if best_type and best_score > UNKNOWN_THRESHOLD else EmploymentType.UNKNOWN,
        confidence=min(best_score / CONFIDENCE_DIVISOR, 1.0),
        matched_keywords=list(matches[best_type]) if best_type else [],
        negative_signals=negative_signals,
    )


def _ordered_union(*groups: List[str]) -> List[str]:
    seen: Dict[str, None] = {}
    for group in groups:
        for item in group:
            seen.setdefault(item, None)
    return list(seen)
