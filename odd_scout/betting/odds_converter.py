"""
Odds conversion and calculation utilities.

Converts decimal odds to implied probabilities with a bias-corrected
margin removal ("goto-style" conversion): instead of scaling the
bookmaker's overround away proportionally, each outcome gives back a
share of the margin weighted by its uncertainty and by a step multiplier
that grows with the odd, which corrects for the favorite-longshot bias.
"""
from decimal import Decimal, localcontext
from typing import NamedTuple, Optional, Sequence

from loguru import logger

from odd_scout.config.constants import (
    BIAS_CORRECTION_BANDS,
    DECIMAL_PRECISION,
    LONGSHOT_BIAS_CORRECTION,
    MARGIN_EPSILON,
    MAX_DECIMAL_ODD,
    MIN_DECIMAL_ODD,
    MIN_OUTCOMES,
    PROBABILITY_FLOOR,
)
from odd_scout.data.events import OddValue, to_decimal

ONE = Decimal("1")


class OddsValidationError(ValueError):
    """Raised when an odds vector cannot be converted."""

    def __init__(self, message: str, index: Optional[int] = None):
        super().__init__(message)
        self.index = index


class ConversionComparison(NamedTuple):
    """Bias-corrected and naive probabilities side by side."""

    corrected: tuple[Decimal, ...]
    naive: tuple[Decimal, ...]

    @property
    def max_difference(self) -> Decimal:
        """Largest absolute gap between the two methods."""
        return max(abs(c - n) for c, n in zip(self.corrected, self.naive))

    @property
    def differences(self) -> tuple[Decimal, ...]:
        """Per-outcome corrected minus naive."""
        return tuple(c - n for c, n in zip(self.corrected, self.naive))


# Diagnostic scenarios for comparing the two methods
COMMON_SCENARIOS: dict[str, tuple[Decimal, ...]] = {
    "Close Match": (Decimal("2.10"), Decimal("3.40"), Decimal("3.20")),
    "Strong Favorite": (Decimal("1.25"), Decimal("5.50"), Decimal("8.00")),
    "Longshot Special": (Decimal("1.15"), Decimal("7.00"), Decimal("15.00")),
    "Three-Way Even": (Decimal("2.90"), Decimal("3.10"), Decimal("2.95")),
    "Tennis Match": (Decimal("1.50"), Decimal("2.75")),
    "High Margin Bookmaker": (Decimal("1.80"), Decimal("1.80"), Decimal("4.50")),
}


def validate_odds(odds: Optional[Sequence[OddValue]]) -> tuple[Decimal, ...]:
    """
    Validate an odds vector and coerce it to Decimals.

    Args:
        odds: Decimal odds, at least two, each in (1, 1000]

    Returns:
        Tuple of Decimal odds

    Raises:
        OddsValidationError: On a missing, short, non-numeric or out-of-range vector

    Examples:
        >>> validate_odds(["2.0", 3.5])
        (Decimal('2.0'), Decimal('3.5'))
    """
    if odds is None:
        raise OddsValidationError("Odds cannot be None")

    values = list(odds)
    if len(values) < MIN_OUTCOMES:
        raise OddsValidationError(
            f"Odds must contain at least {MIN_OUTCOMES} elements, got {len(values)}"
        )

    result = []
    for i, raw in enumerate(values):
        try:
            odd = to_decimal(raw)
        except ValueError as e:
            raise OddsValidationError(f"Odds[{i}] = {raw!r} is not numeric", i) from e
        if odd <= MIN_DECIMAL_ODD:
            raise OddsValidationError(
                f"Odds[{i}] = {odd} is invalid. All odds must be > {MIN_DECIMAL_ODD}", i
            )
        if odd > MAX_DECIMAL_ODD:
            raise OddsValidationError(f"Odds[{i}] = {odd} is unrealistically high", i)
        result.append(odd)

    return tuple(result)


def decimal_to_implied_probability(decimal_odds: Decimal) -> Decimal:
    """
    Convert decimal odds to implied probability.

    Examples:
        >>> decimal_to_implied_probability(Decimal('2.0'))
        Decimal('0.5')
    """
    return ONE / decimal_odds


def inverse_probabilities(odds: Sequence[Decimal]) -> tuple[Decimal, ...]:
    """Naive implied probabilities 1/odd, still including the margin."""
    return tuple(decimal_to_implied_probability(odd) for odd in odds)


def calculate_margin(probabilities: Sequence[Decimal]) -> Decimal:
    """Overround: how far the implied probabilities exceed 1."""
    return sum(probabilities, Decimal("0")) - ONE


def normalize_probabilities(probabilities: Sequence[Decimal]) -> tuple[Decimal, ...]:
    """
    Scale probabilities to sum to 1.

    Raises:
        ArithmeticError: If the sum is not positive
    """
    total = sum(probabilities, Decimal("0"))
    if total <= 0:
        raise ArithmeticError("Sum of probabilities must be greater than zero")
    return tuple(p / total for p in probabilities)


def uncertainty_weights(
    probabilities: Sequence[Decimal],
    odds: Sequence[Decimal],
) -> tuple[Decimal, ...]:
    """
    Per-outcome weight sqrt(p * (1 - p) * odd).

    Higher for longshots, whose implied probability is the noisier estimate.
    """
    return tuple((p * (ONE - p) * odd).sqrt() for p, odd in zip(probabilities, odds))


def bias_correction_multiplier(odd: Decimal) -> Decimal:
    """
    Step multiplier for the favorite-longshot bias.

    Examples:
        >>> bias_correction_multiplier(Decimal('1.5'))
        Decimal('0.7')
        >>> bias_correction_multiplier(Decimal('12'))
        Decimal('1.6')
    """
    for upper_bound, multiplier in BIAS_CORRECTION_BANDS:
        if odd <= upper_bound:
            return multiplier
    return LONGSHOT_BIAS_CORRECTION


def apply_bias_correction(
    probabilities: Sequence[Decimal],
    odds: Sequence[Decimal],
    margin: Decimal,
) -> tuple[Decimal, ...]:
    """
    Remove the margin unevenly across outcomes.

    reduction_i = margin * (w_i / sum(w)) * multiplier_i, and each adjusted
    probability is floored at PROBABILITY_FLOOR. The result is not
    normalized.
    """
    weights = uncertainty_weights(probabilities, odds)
    total_weight = sum(weights, Decimal("0"))

    adjusted = []
    for p, odd, weight in zip(probabilities, odds, weights):
        reduction = margin * (weight / total_weight) * bias_correction_multiplier(odd)
        adjusted.append(max(PROBABILITY_FLOOR, p - reduction))
    return tuple(adjusted)


def calculate_expected_value(
    win_probability: Decimal,
    decimal_odds: Decimal,
) -> Decimal:
    """
    Calculate expected value per unit wagered.

    EV = p * (d - 1) - (1 - p) * 1

    Args:
        win_probability: Estimated probability of the outcome (0-1)
        decimal_odds: Payout odds offered

    Returns:
        Expected value per unit stake (positive = profitable)

    Examples:
        >>> calculate_expected_value(Decimal('0.50'), Decimal('2.20'))
        Decimal('0.1000')
    """
    return win_probability * (decimal_odds - ONE) - (ONE - win_probability) * ONE


class ProbabilityConverter:
    """
    Converts bookmaker odds to bias-corrected probabilities.

    Stateless; convert() and compare() are pure functions of their input.

    Example:
        >>> converter = ProbabilityConverter()
        >>> probs = converter.convert([Decimal("2.10"), Decimal("3.40"), Decimal("3.20")])
        >>> [f"{p:.4f}" for p in probs]
        ['0.4511', '0.2650', '0.2838']
    """

    def __init__(self, precision: int = DECIMAL_PRECISION):
        self.precision = precision
        self.logger = logger.bind(component="converter")

    def convert(self, odds: Optional[Sequence[OddValue]]) -> tuple[Decimal, ...]:
        """
        Convert decimal odds to probabilities summing to 1.

        Args:
            odds: At least two decimal odds, each in (1, 1000]

        Returns:
            Probabilities in (0, 1), same length and order as the input

        Raises:
            OddsValidationError: If the input is invalid
        """
        values = validate_odds(odds)

        with localcontext() as ctx:
            ctx.prec = self.precision
            naive = inverse_probabilities(values)
            margin = calculate_margin(naive)

            if margin < MARGIN_EPSILON:
                self.logger.debug(f"Margin {margin:.6f} below epsilon, plain normalization")
                return normalize_probabilities(naive)

            try:
                adjusted = apply_bias_correction(naive, values, margin)
                result = normalize_probabilities(adjusted)
            except ArithmeticError as e:
                self.logger.warning(
                    f"Bias correction failed for odds {[str(o) for o in values]}: {e}; "
                    "falling back to plain normalization"
                )
                return normalize_probabilities(naive)

        self.logger.debug(
            f"Odds {[str(o) for o in values]} -> "
            f"{[f'{p:.6f}' for p in result]} (margin {margin:.6f})"
        )
        return result

    def naive(self, odds: Optional[Sequence[OddValue]]) -> tuple[Decimal, ...]:
        """Plain normalized inverse odds."""
        values = validate_odds(odds)
        with localcontext() as ctx:
            ctx.prec = self.precision
            return normalize_probabilities(inverse_probabilities(values))

    def compare(self, odds: Optional[Sequence[OddValue]]) -> ConversionComparison:
        """
        Bias-corrected and naive probabilities for the same odds.

        Raises:
            OddsValidationError: If the input is invalid
        """
        return ConversionComparison(corrected=self.convert(odds), naive=self.naive(odds))
