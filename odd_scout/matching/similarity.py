"""
Token-set similarity between team names.

Jaccard similarity over normalized token sets, expressed as a percentage.
Word order and filler words ("FC", "Club", ...) do not affect the score.
"""
from decimal import Decimal
from typing import Optional

from .normalizer import team_name_tokens

HUNDRED = Decimal("100")


def jaccard_percentage(tokens1: frozenset[str], tokens2: frozenset[str]) -> Decimal:
    """
    Jaccard similarity of two token sets, scaled to [0, 100].

    Two empty sets are identical (100); exactly one empty set scores 0.
    """
    if not tokens1 and not tokens2:
        return HUNDRED
    if not tokens1 or not tokens2:
        return Decimal("0")

    intersection = len(tokens1 & tokens2)
    union = len(tokens1 | tokens2)
    return Decimal(intersection) / Decimal(union) * HUNDRED


def token_set_similarity(name1: Optional[str], name2: Optional[str]) -> Decimal:
    """
    Similarity of two team names as a percentage.

    Args:
        name1: First team name (raw or already normalized)
        name2: Second team name

    Returns:
        Decimal in [0, 100]

    Examples:
        >>> token_set_similarity("Real Madrid CF", "Real Madrid")
        Decimal('100')
        >>> token_set_similarity("Arsenal", "Chelsea")
        Decimal('0')
    """
    return jaccard_percentage(team_name_tokens(name1), team_name_tokens(name2))
