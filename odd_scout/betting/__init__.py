"""
Probability conversion and value detection.

Provides tools for:
- Bias-corrected odds to probability conversion
- Expected value scoring of matched events
- Batch value bet detection across two feeds
"""

from .odds_converter import (
    COMMON_SCENARIOS,
    ConversionComparison,
    OddsValidationError,
    ProbabilityConverter,
    calculate_expected_value,
    calculate_margin,
    validate_odds,
)

from .value_scorer import (
    ValueBetCandidate,
    ValueBetScorer,
)

from .engine import (
    ScanResult,
    ValueBetEngine,
)

__all__ = [
    # Odds converter
    "COMMON_SCENARIOS",
    "ConversionComparison",
    "OddsValidationError",
    "ProbabilityConverter",
    "calculate_expected_value",
    "calculate_margin",
    "validate_odds",
    # Value scoring
    "ValueBetCandidate",
    "ValueBetScorer",
    # Engine
    "ScanResult",
    "ValueBetEngine",
]
