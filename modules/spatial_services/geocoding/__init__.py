"""Forward and Reverse Geocoding

Address tokenization, rule-table confidence scoring and the geocoding service.
"""

from .address_matching import (
    AddressTokens,
    MatchRule,
    ScoredCandidate,
    MATCH_RULES,
    FALLBACK_SCORE,
    tokenize_address,
    score_row,
    rank_candidates,
    select_best_match,
)
from .geocoding_models import (
    GeocodeRequest,
    GeocodeResult,
    ReverseGeocodeRequest,
    ReverseGeocodeMatch,
    ReverseGeocodeResult,
)
from .geocoding_service import GeocodingService, reverse_confidence

__all__ = [
    'AddressTokens',
    'MatchRule',
    'ScoredCandidate',
    'MATCH_RULES',
    'FALLBACK_SCORE',
    'tokenize_address',
    'score_row',
    'rank_candidates',
    'select_best_match',
    'GeocodeRequest',
    'GeocodeResult',
    'ReverseGeocodeRequest',
    'ReverseGeocodeMatch',
    'ReverseGeocodeResult',
    'GeocodingService',
    'reverse_confidence',
]
