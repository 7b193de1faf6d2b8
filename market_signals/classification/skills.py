"""Technology skill tagging.

Matched substrings are kept as written in the posting ("React.js", "react")
rather than canonicalized.
"""

import re
from typing import Dict, List, Optional

MAX_SKILLS = 30

_I = re.IGNORECASE

# Ordered; the first sighting of a literal fixes its position in the output.
SKILL_PATTERNS = [
    re.compile(r"\bJava\b(?!Script)"),
    re.compile(r"\bJavaScript\b", _I),
    re.compile(r"\bTypeScript\b", _I),
    re.compile(r"\bPython\b", _I),
    re.compile(r"\bGo(?:lang)?\b"),
    re.compile(r"\bRust\b", _I),
    re.compile(r"\bC\+\+(?!\w)"),
    re.compile(r"\bC#(?!\w)"),
    re.compile(r"(?<!\w)\.NET\b"),
    re.compile(r"\bRuby\b", _I),
    re.compile(r"\bScala\b", _I),
    re.compile(r"\bKotlin\b", _I),
    re.compile(r"\bSwift\b", _I),
    re.compile(r"\bReact(?:\.?js)?\b", _I),
    re.compile(r"\bAngular\b", _I),
    re.compile(r"\bVue(?:\.?js)?\b", _I),
    re.compile(r"\bNode(?:\.?js)?\b", _I),
    re.compile(r"\bDjango\b", _I),
    re.compile(r"\bFlask\b", _I),
    re.compile(r"\bSpring\s*(?:Boot)?\b", _I),
    re.compile(r"\bAWS\b"),
    re.compile(r"\bAzure\b", _I),
    re.compile(r"\bGCP\b"),
    re.compile(r"\bGoogle\s*Cloud\b", _I),
    re.compile(r"\bDocker\b", _I),
    re.compile(r"\bKubernetes\b", _I),
    re.compile(r"\bK8s\b", _I),
    re.compile(r"\bTerraform\b", _I),
    re.compile(r"\bAnsible\b", _I),
    re.compile(r"\bJenkins\b", _I),
    re.compile(r"\bCI\s*/?\s*CD\b", _I),
    re.compile(r"\bSQL\b", _I),
    re.compile(r"\bPostgreSQL?\b", _I),
    re.compile(r"\bMySQL\b", _I),
    re.compile(r"\bMongoDB\b", _I),
    re.compile(r"\bRedis\b", _I),
    re.compile(r"\bElasticsearch\b", _I),
    re.compile(r"\bKafka\b", _I),
    re.compile(r"\bRabbitMQ\b", _I),
    re.compile(r"\bSnowflake\b", _I),
    re.compile(r"\bDatabricks\b", _I),
    re.compile(r"\bSpark\b", _I),
    re.compile(r"\bTableau\b", _I),
    re.compile(r"\bPower\s*BI\b", _I),
    re.compile(r"\bdbt\b"),
    re.compile(r"\bAirflow\b", _I),
    re.compile(r"\bLinux\b", _I),
    re.compile(r"\bGraphQL\b", _I),
    re.compile(r"\bREST\s*(?:ful|API)?\b", _I),
    re.compile(r"\bMicroservices?\b", _I),
    re.compile(r"\bDevOps\b", _I),
    re.compile(r"\bSRE\b"),
    re.compile(r"\bAgile\b", _I),
    re.compile(r"\bScrum\b", _I),
    re.compile(r"\bSOC\b"),
    re.compile(r"\bSIEM\b"),
    re.compile(r"\bSplunk\b", _I),
    re.compile(r"\bCISA\b"),
    re.compile(r"\bCISSP\b"),
    re.compile(r"\bPCI[\s-]?DSS\b", _I),
    re.compile(r"\bSOC\s*2\b", _I),
    re.compile(r"\bSalesforce\b", _I),
    re.compile(r"\bSAP\b"),
    re.compile(r"\bServiceNow\b", _I),
    re.compile(r"\bPHP\b", _I),
    re.compile(r"\bLaravel\b", _I),
    re.compile(r"\bNext\.?js\b", _I),
    re.compile(r"\bFigma\b", _I),
    re.compile(r"\bUI\s*/?\s*UX\b", _I),
]


def extract_skills(text: Optional[str]) -> List[str]:
    """Return skill literals found in ``text``, deduplicated in first-seen order.

    Args:
        text: Title and description joined by a space

    Returns:
        At most MAX_SKILLS matched substrings
    """
    if not text:
        return []

    found: Dict[str, None] = {}
    for pattern in SKILL_PATTERNS:
        for match in pattern.finditer(text):
            literal = match.group(0).strip()
            if literal:
                found.setdefault(literal, None)

    return list(found)[:MAX_SKILLS]
