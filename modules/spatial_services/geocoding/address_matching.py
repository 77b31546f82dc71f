"""Address tokenization and confidence scoring for forward geocoding.

Scoring is an ordered rule table evaluated top-down; the first matching rule
sets the candidate's confidence, and rows matching no rule get the fallback
score. The best candidate is the highest score, then the most reliable
coordinate, then the earliest row.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ..models import reliability_from_row

FALLBACK_SCORE = 50.0
FALLBACK_RULE = "fallback"


@dataclass(frozen=True)
class AddressTokens:
    """Whitespace-segmented view of a free-text address.

    ``"10 Bridge Rd Barwon Heads"`` gives number ``10``, street name
    ``Bridge`` and locality ``Barwon Heads``; the third token is taken to be
    the street type and does not take part in matching.
    """

    full_text: str
    street_number: str
    street_name: str
    locality: str


def tokenize_address(address: str) -> AddressTokens:
    text = address.strip()
    parts = text.split()

    street_number = parts[0] if parts else ""
    street_name = parts[1] if len(parts) > 1 else ""
    if len(parts) > 3:
        locality = " ".join(parts[3:])
    elif len(parts) == 3:
        locality = parts[2]
    else:
        locality = ""

    return AddressTokens(
        full_text=text,
        street_number=street_number,
        street_name=street_name,
        locality=locality,
    )


def _lower(value: Any) -> str:
    return str(value).lower() if value is not None else ""


def _number_matches(tokens: AddressTokens, row: Dict[str, Any]) -> bool:
    return _lower(row.get("street_number")) == tokens.street_number.lower()


def _exact_components(tokens: AddressTokens, row: Dict[str, Any]) -> bool:
    return (_number_matches(tokens, row)
            and _lower(row.get("street_name")) == tokens.street_name.lower()
            and tokens.locality.lower() in _lower(row.get("locality_name")))


def _number_and_partial_street(tokens: AddressTokens, row: Dict[str, Any]) -> bool:
    return (_number_matches(tokens, row)
            and tokens.street_name.lower() in _lower(row.get("street_name")))


def _full_text_substring(tokens: AddressTokens, row: Dict[str, Any]) -> bool:
    constructed = " ".join(
        _lower(row.get(column)) for column in ("street_number", "street_name", "locality_name")
    )
    return tokens.full_text.lower() in constructed


@dataclass(frozen=True)
class MatchRule:
    name: str
    score: float
    predicate: Callable[[AddressTokens, Dict[str, Any]], bool]


MATCH_RULES: Tuple[MatchRule, ...] = (
    MatchRule("exact_components", 95.0, _exact_components),
    MatchRule("number_and_partial_street", 85.0, _number_and_partial_street),
    MatchRule("full_text_substring", 75.0, _full_text_substring),
)


@dataclass(frozen=True)
class ScoredCandidate:
    row: Dict[str, Any]
    score: float
    rule: str
    reliability: int
    position: int


def score_row(tokens: AddressTokens, row: Dict[str, Any],
              rules: Sequence[MatchRule] = MATCH_RULES) -> Tuple[float, str]:
    """Return ``(score, rule_name)`` of the first rule matching ``row``."""
    for rule in rules:
        if rule.predicate(tokens, row):
            return rule.score, rule.name
    return FALLBACK_SCORE, FALLBACK_RULE


def rank_candidates(tokens: AddressTokens, rows: Sequence[Dict[str, Any]],
                    rules: Sequence[MatchRule] = MATCH_RULES) -> List[ScoredCandidate]:
    """Score every row and order best first."""
    scored = []
    for position, row in enumerate(rows):
        score, rule = score_row(tokens, row, rules)
        scored.append(ScoredCandidate(
            row=row,
            score=score,
            rule=rule,
            reliability=reliability_from_row(row.get("coordinate_reliability")),
            position=position,
        ))
    return sorted(scored, key=lambda c: (-c.score, c.reliability, c.position))


def select_best_match(tokens: AddressTokens, rows: Sequence[Dict[str, Any]],
                      rules: Sequence[MatchRule] = MATCH_RULES) -> Optional[ScoredCandidate]:
    ranked = rank_candidates(tokens, rows, rules)
    return ranked[0] if ranked else None
