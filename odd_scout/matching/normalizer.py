"""
Team name canonicalization.

Both feeds spell team names differently ("FC Porto" vs "Porto",
"Atlético" vs "Atletico"). Names are reduced to lowercase ASCII tokens
with club-type filler words removed before they are compared.
"""
import re
import unicodedata
from typing import Optional

from odd_scout.config.constants import TEAM_NAME_STOPWORDS

_NON_ALNUM = re.compile(r"[^a-z0-9 ]")


def normalize_team_name(name: Optional[str]) -> str:
    """
    Canonicalize a team name for comparison.

    Steps: decompose accented characters and drop combining marks (and any
    other non-ASCII character), lower-case, strip everything except a-z,
    0-9 and spaces, split on whitespace, drop stopwords, rejoin with single
    spaces.

    Args:
        name: Raw team name; None is treated as empty

    Returns:
        Normalized name, possibly empty. Never raises.

    Examples:
        >>> normalize_team_name("Atlético Madrid")
        'atletico madrid'
        >>> normalize_team_name("Manchester United FC")
        'manchester'
    """
    if not name:
        return ""

    decomposed = unicodedata.normalize("NFKD", name)
    ascii_only = decomposed.encode("ascii", "ignore").decode("ascii")
    cleaned = _NON_ALNUM.sub("", ascii_only.lower())

    tokens = [token for token in cleaned.split() if token not in TEAM_NAME_STOPWORDS]
    return " ".join(tokens)


def team_name_tokens(name: Optional[str]) -> frozenset[str]:
    """Token set of the normalized name."""
    return frozenset(normalize_team_name(name).split())


def slugify_team_name(name: Optional[str]) -> str:
    """Normalized name joined with dashes, for use in keys."""
    return normalize_team_name(name).replace(" ", "-")
