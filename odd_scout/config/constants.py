"""
Constants and enumerations for the value-bet detection engine.

Contains source/market/outcome enums, matching thresholds and the
numeric constants of the probability conversion.
"""
from decimal import Decimal
from enum import Enum
from typing import Final


# =============================================================================
# SOURCES, MARKETS, OUTCOMES
# =============================================================================
class OddsSource(str, Enum):
    """Known odds feeds."""

    BETBY = "betby"  # Bettable feed, supplies payout odds
    PINNACLE = "pinnacle"  # Sharp feed, supplies pricing odds


class MarketType(str, Enum):
    """Supported markets."""

    MATCH_1X2 = "match_1x2"


class Outcome(str, Enum):
    """Outcomes of a three-way market."""

    TEAM1_WIN = "team1_win"
    DRAW = "draw"
    TEAM2_WIN = "team2_win"


# Index order of a three-way odds tuple, also the EV tie-break order
OUTCOME_PRIORITY: Final[tuple[Outcome, ...]] = (
    Outcome.TEAM1_WIN,
    Outcome.DRAW,
    Outcome.TEAM2_WIN,
)

MARKET_OUTCOME_COUNT: Final[dict[MarketType, int]] = {
    MarketType.MATCH_1X2: 3,
}


# =============================================================================
# NAME MATCHING
# =============================================================================
TEAM_NAME_STOPWORDS: Final[frozenset[str]] = frozenset(
    {
        "fc",
        "cf",
        "club",
        "united",
        "city",
        "town",
        "athletic",
        "sport",
        "association",
        "al",
    }
)

TEAM_SIMILARITY_THRESHOLD: Final[Decimal] = Decimal("80")

# Kickoff times are compared as strings at minute precision, in UTC
KICKOFF_FORMAT: Final[str] = "%Y-%m-%d, %H:%M"


# =============================================================================
# ODDS VALIDATION / CONVERSION
# =============================================================================
MIN_DECIMAL_ODD: Final[Decimal] = Decimal("1.0")  # exclusive
MAX_DECIMAL_ODD: Final[Decimal] = Decimal("1000.0")  # inclusive
MIN_OUTCOMES: Final[int] = 2

# Below this overround the book is treated as fair
MARGIN_EPSILON: Final[Decimal] = Decimal("0.001")
PROBABILITY_FLOOR: Final[Decimal] = Decimal("0.001")
PROBABILITY_SUM_TOLERANCE: Final[Decimal] = Decimal("1e-6")
DECIMAL_PRECISION: Final[int] = 28

# Favorite-longshot bias multipliers: (upper odd bound inclusive, multiplier)
BIAS_CORRECTION_BANDS: Final[tuple[tuple[Decimal, Decimal], ...]] = (
    (Decimal("2.0"), Decimal("0.7")),  # strong favorites
    (Decimal("4.0"), Decimal("1.0")),  # moderate favorites
    (Decimal("10.0"), Decimal("1.3")),  # moderate longshots
)
LONGSHOT_BIAS_CORRECTION: Final[Decimal] = Decimal("1.6")


# =============================================================================
# VALUE DETECTION
# =============================================================================
MIN_EXPECTED_VALUE: Final[Decimal] = Decimal("0.01")  # 1% edge
VALUE_BET_RETENTION_HOURS: Final[int] = 24
