"""Broker match scoring.

Ranks data brokers by how likely they are to hold data for an email
address. The score is deterministic for a given ``(email, catalog)`` pair so
results can be cached and tested:

1. base score in [0, 50] from a 32-bit string hash of ``email + broker name``
2. a fixed weight per broker category
3. adjustments for the class of the email domain (webmail, .edu, .gov,
   other non-.com business domains)

The hash is the classic ``h = h * 31 + c`` over UTF-16 code units, taken
modulo 2**32 and read back as a signed 32-bit integer, so it reproduces bit
for bit in any language with 32-bit integer arithmetic.
"""

from dataclasses import dataclass
from typing import Any, Sequence

MAX_SCORE = 100
BASE_SCORE_MODULUS = 51
USER_DATA_THRESHOLD = 50
DEFAULT_LIMIT = 15

CATEGORY_WEIGHTS = {
    "personal-data": 25,
    "people-search": 20,
    "background-check": 18,
    "credit-reporting": 15,
    "marketing": 15,
    "advertising": 12,
    "social-media": 10,
    "risk-management": 10,
    "financial": 8,
    "insurance": 8,
    "other": 5,
}

FREE_WEBMAIL_DOMAINS = frozenset({
    "gmail.com",
    "googlemail.com",
    "yahoo.com",
    "ymail.com",
    "hotmail.com",
    "outlook.com",
    "live.com",
    "msn.com",
    "aol.com",
    "icloud.com",
    "protonmail.com",
    "mail.com",
    "gmx.com",
})

# Per-category adjustments by domain class
WEBMAIL_ADJUSTMENTS = {"people-search": 10, "marketing": 8, "advertising": 8}
EDU_ADJUSTMENTS = {"marketing": -10, "background-check": 10}
GOV_PENALTY = -15
GOV_ADJUSTMENTS = {"people-search": -10}
BUSINESS_ADJUSTMENTS = {"marketing": 8, "risk-management": 10, "background-check": 5}


@dataclass(frozen=True)
class MatchScore:
    broker: Any
    score: int
    has_user_data: bool


def string_hash(value: str) -> int:
    """Signed 32-bit ``h * 31 + c`` hash over the UTF-16 code units of ``value``."""
    h = 0
    encoded = value.encode("utf-16-le", "surrogatepass")
    for i in range(0, len(encoded), 2):
        h = (h * 31 + (encoded[i] | encoded[i + 1] << 8)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return h


def email_domain(email: str) -> str:
    _, sep, domain = email.partition("@")
    return domain.strip().lower() if sep else ""


def domain_adjustment(domain: str, category: str) -> int:
    if not domain:
        return 0
    if domain in FREE_WEBMAIL_DOMAINS:
        return WEBMAIL_ADJUSTMENTS.get(category, 0)
    if domain.endswith(".edu"):
        return EDU_ADJUSTMENTS.get(category, 0)
    if domain.endswith(".gov"):
        return GOV_PENALTY + GOV_ADJUSTMENTS.get(category, 0)
    if not domain.endswith(".com"):
        return BUSINESS_ADJUSTMENTS.get(category, 0)
    return 0


def score_broker(email: str, broker: Any, domain: str | None = None) -> int:
    if domain is None:
        domain = email_domain(email)
    category = getattr(broker, "category", None) or "other"

    score = abs(string_hash(email + broker.name)) % BASE_SCORE_MODULUS
    score += CATEGORY_WEIGHTS.get(category, CATEGORY_WEIGHTS["other"])
    score += domain_adjustment(domain, category)
    return max(0, min(MAX_SCORE, score))


def score_brokers(email: str, catalog: Sequence[Any], limit: int = DEFAULT_LIMIT) -> list[MatchScore]:
    """Return the top ``limit`` brokers for ``email``, best first.

    ``catalog`` items need ``name`` and ``category`` attributes. Equal scores
    keep their catalog order.
    """
    domain = email_domain(email)
    scored = []
    for broker in catalog:
        score = score_broker(email, broker, domain)
        scored.append(MatchScore(broker=broker, score=score, has_user_data=score > USER_DATA_THRESHOLD))

    # sorted() is stable, also with reverse=True
    ranked = sorted(scored, key=lambda match: match.score, reverse=True)
    return ranked[:max(0, limit)]
