"""
Elo rating calculator for pairwise game comparisons.

Implements the standard Elo formula with a fixed K-factor:

  Expected score: E_A = 1 / (1 + 10^((R_B - R_A) / 400)),  E_B = 1 - E_A
  New rating:     R'_A = R_A + K * (S_A - E_A)

Where:
  R_A, R_B = Current ratings of games A and B
  S_A      = 1 if A was preferred, 0 otherwise
  K        = How much ratings change per comparison

The calculator is a pure function of the two ratings and the outcome.
It never touches the database; persisting the result is the rating
store's job. Ratings stay floats: nothing is rounded or clamped, and a
rating may drift below zero after a long losing streak.
"""

from dataclasses import dataclass
from typing import Optional

from steamrank.elo.constants import K_FACTOR, S_FACTOR
from steamrank.errors import InvalidWinner


@dataclass(frozen=True)
class EloUpdate:
    """
    Result of an Elo calculation.

    Contains everything needed to persist the new ratings and to show
    the user what their choice did.
    """
    # Ratings before the comparison
    rating_a_before: float
    rating_b_before: float

    # Ratings after the comparison
    rating_a_after: float
    rating_b_after: float

    # Expected scores (before the comparison)
    expected_a: float
    expected_b: float

    # Who won: 'A' or 'B'
    winner: str

    k_factor: float

    @property
    def change_a(self) -> float:
        """Rating change for game A."""
        return self.rating_a_after - self.rating_a_before

    @property
    def change_b(self) -> float:
        """Rating change for game B."""
        return self.rating_b_after - self.rating_b_before

    @property
    def was_upset(self) -> bool:
        """Whether the lower-rated game won."""
        if self.winner == "A":
            return self.rating_a_before < self.rating_b_before
        return self.rating_b_before < self.rating_a_before

    def __repr__(self) -> str:
        return (
            f"<EloUpdate(A: {self.rating_a_before:.1f} -> {self.rating_a_after:.1f}, "
            f"B: {self.rating_b_before:.1f} -> {self.rating_b_after:.1f}, "
            f"winner={self.winner})>"
        )


def expected_score(rating: float, opponent_rating: float) -> float:
    """
    Probability-like expected score of `rating` against `opponent_rating`.

    For rating gaps so large that 10**x overflows a float, the score
    saturates at 0.0 (the exact limit of the formula).
    """
    try:
        return 1.0 / (1.0 + 10.0 ** ((opponent_rating - rating) / S_FACTOR))
    except OverflowError:
        return 0.0


def winner_side(entity_a: int, entity_b: int, winner_id: int) -> str:
    """
    Map a winning game id onto 'A' or 'B'.

    Raises:
        InvalidWinner: If winner_id is neither entity_a nor entity_b
    """
    if winner_id == entity_a:
        return "A"
    if winner_id == entity_b:
        return "B"
    raise InvalidWinner(winner_id, entity_a, entity_b)


class EloCalculator:
    """
    Fixed-K Elo calculator.

    Usage:
        calculator = EloCalculator()

        result = calculator.calculate(elo_a=1600.0, elo_b=1400.0, winner="B")
        print(f"A: {result.rating_a_before} -> {result.rating_a_after}")
        print(f"Expected score for A: {result.expected_a:.1%}")
    """

    def __init__(self, k_factor: Optional[float] = None):
        """
        Args:
            k_factor: Rating points moved by a fully unexpected result.
                      Defaults to K_FACTOR.
        """
        self.k_factor = float(k_factor if k_factor is not None else K_FACTOR)

    def calculate(self, elo_a: float, elo_b: float, winner: str) -> EloUpdate:
        """
        Calculate new ratings after a single comparison.

        A game gains more for an upset (beating a higher-rated game) and
        loses more for a surprising loss. The two changes always cancel
        out exactly, up to float rounding.

        Args:
            elo_a: Game A's rating before the comparison
            elo_b: Game B's rating before the comparison
            winner: 'A' if game A was preferred, 'B' if game B was

        Returns:
            EloUpdate with all calculation details

        Raises:
            InvalidWinner: If winner is not 'A' or 'B'

        Example:
            # Two fresh games, A preferred
            result = calc.calculate(1500.0, 1500.0, "A")
            # result.rating_a_after == 1516.0, result.rating_b_after == 1484.0
        """
        if winner not in ("A", "B"):
            raise InvalidWinner(winner)

        elo_a = float(elo_a)
        elo_b = float(elo_b)

        exp_a = expected_score(elo_a, elo_b)
        exp_b = 1.0 - exp_a

        # Actual scores (1 for the preferred game, 0 for the other)
        actual_a = 1.0 if winner == "A" else 0.0
        actual_b = 1.0 - actual_a

        new_a = elo_a + self.k_factor * (actual_a - exp_a)
        new_b = elo_b + self.k_factor * (actual_b - exp_b)

        return EloUpdate(
            rating_a_before=elo_a,
            rating_b_before=elo_b,
            rating_a_after=new_a,
            rating_b_after=new_b,
            expected_a=exp_a,
            expected_b=exp_b,
            winner=winner,
            k_factor=self.k_factor,
        )

    def get_win_probability(self, elo_a: float, elo_b: float) -> float:
        """Expected score of game A against game B."""
        return expected_score(float(elo_a), float(elo_b))


def calculate_elo_change(
    elo_a: float,
    elo_b: float,
    winner: str,
    k_factor: float = K_FACTOR,
) -> tuple[float, float]:
    """
    Convenience function returning just the new ratings.

    Returns:
        Tuple of (new_elo_a, new_elo_b)
    """
    result = EloCalculator(k_factor).calculate(elo_a, elo_b, winner)
    return result.rating_a_after, result.rating_b_after
