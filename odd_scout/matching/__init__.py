"""
Cross-feed event matching.

Provides tools for:
- Team name normalization
- Token-set similarity scoring
- Pairing events across two feeds
"""
from .event_matcher import EventMatcher, MatchCandidate, format_kickoff
from .normalizer import normalize_team_name, slugify_team_name, team_name_tokens
from .similarity import jaccard_percentage, token_set_similarity

__all__ = [
    "EventMatcher",
    "MatchCandidate",
    "format_kickoff",
    "normalize_team_name",
    "slugify_team_name",
    "team_name_tokens",
    "jaccard_percentage",
    "token_set_similarity",
]
