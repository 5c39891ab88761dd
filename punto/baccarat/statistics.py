"""
Trend analysis over a table's round history.

This module provides the figures a table shows next to the roads (win
rates, streaks and pair frequencies), the bead road itself, confidence
intervals for win rates, and a chi-square test of the undealt shoe
composition.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd
import scipy.stats as stats

from punto.baccarat.result import RoundResult, Winner
from punto.common.shoe import Shoe

BEAD_ROAD_ROWS = 6

# Cards of each baccarat value in one 52-card deck: 16 zero-value cards, 4 of each other value
_DECK_COMPOSITION = np.array([16] + [4] * 9, dtype=float)

_COLUMNS = [
    "round_id",
    "winner",
    "banker_points",
    "player_points",
    "banker_pair",
    "player_pair",
    "is_big",
    "total_cards",
    "natural",
]


@dataclass
class ConfidenceInterval:
    """
    Represents a confidence interval with lower and upper bounds.

    Attributes:
        lower: The lower bound of the confidence interval
        upper: The upper bound of the confidence interval
        confidence: The confidence level (e.g., 0.95 for 95% confidence)
    """

    lower: float
    upper: float
    confidence: float

    def contains(self, value: float) -> bool:
        """Check if the interval contains a value."""
        return self.lower <= value <= self.upper

    def to_dict(self) -> Dict[str, float]:
        return {"lower": self.lower, "upper": self.upper, "confidence": self.confidence}


@dataclass
class Streak:
    winner: Optional[Winner] = None
    count: int = 0


@dataclass
class TrendAnalysis:
    total_games: int = 0
    banker_wins: int = 0
    player_wins: int = 0
    ties: int = 0
    banker_win_rate: float = 0.0
    player_win_rate: float = 0.0
    tie_rate: float = 0.0
    current_streak: Streak = field(default_factory=Streak)
    max_banker_streak: int = 0
    max_player_streak: int = 0
    banker_pair_count: int = 0
    player_pair_count: int = 0
    banker_pair_rate: float = 0.0
    player_pair_rate: float = 0.0


@dataclass(frozen=True)
class RoadBead:
    """One cell of the bead road."""

    round_id: int
    winner: Winner
    banker_points: int
    player_points: int
    banker_pair: bool
    player_pair: bool

    @classmethod
    def from_result(cls, result: RoundResult) -> "RoadBead":
        return cls(
            round_id=result.round_id,
            winner=result.winner,
            banker_points=result.banker_points,
            player_points=result.player_points,
            banker_pair=result.banker_pair,
            player_pair=result.player_pair,
        )


@dataclass
class ShoeFairness:
    """Chi-square test of the undealt baccarat values against a full shoe."""

    statistic: float
    p_value: float
    cards_remaining: int
    observed: List[int]
    expected: List[float]

    def is_suspicious(self, alpha: float = 0.01) -> bool:
        return self.p_value < alpha


def results_frame(results: Sequence[RoundResult]) -> pd.DataFrame:
    """Tabulate round results, one row per round in history order."""
    rows = [
        {
            "round_id": r.round_id,
            "winner": r.winner.value,
            "banker_points": r.banker_points,
            "player_points": r.player_points,
            "banker_pair": r.banker_pair,
            "player_pair": r.player_pair,
            "is_big": r.is_big,
            "total_cards": r.total_cards,
            "natural": r.is_natural,
        }
        for r in results
    ]
    return pd.DataFrame(rows, columns=_COLUMNS)


def _runs(winners: pd.Series) -> pd.DataFrame:
    # Consecutive equal winners form one run
    run_ids = (winners != winners.shift()).cumsum()
    return winners.groupby(run_ids).agg(["first", "size"])


def current_streak(results: Sequence[RoundResult]) -> Streak:
    """
    The streak ending with the latest round.

    A tie ends a streak and counts as a streak of one on its own.
    """
    if not results:
        return Streak()
    last = results[-1].winner
    if last == Winner.TIE:
        return Streak(Winner.TIE, 1)
    count = 0
    for result in reversed(results):
        if result.winner != last:
            break
        count += 1
    return Streak(last, count)


def max_streak(results: Sequence[RoundResult], winner: Winner) -> int:
    """The longest run of consecutive wins for one side."""
    if not results:
        return 0
    frame = results_frame(results)
    runs = _runs(frame["winner"])
    matching = runs[runs["first"] == winner.value]
    return int(matching["size"].max()) if not matching.empty else 0


def analyze_trend(results: Sequence[RoundResult]) -> TrendAnalysis:
    """Win counts, rates, streaks and pair frequencies for a history."""
    if not results:
        return TrendAnalysis()

    frame = results_frame(results)
    total = len(frame)
    counts = frame["winner"].value_counts()
    banker_wins = int(counts.get(Winner.BANKER.value, 0))
    player_wins = int(counts.get(Winner.PLAYER.value, 0))
    ties = int(counts.get(Winner.TIE.value, 0))
    banker_pairs = int(frame["banker_pair"].sum())
    player_pairs = int(frame["player_pair"].sum())

    return TrendAnalysis(
        total_games=total,
        banker_wins=banker_wins,
        player_wins=player_wins,
        ties=ties,
        banker_win_rate=banker_wins / total,
        player_win_rate=player_wins / total,
        tie_rate=ties / total,
        current_streak=current_streak(results),
        max_banker_streak=max_streak(results, Winner.BANKER),
        max_player_streak=max_streak(results, Winner.PLAYER),
        banker_pair_count=banker_pairs,
        player_pair_count=player_pairs,
        banker_pair_rate=banker_pairs / total,
        player_pair_rate=player_pairs / total,
    )


def bead_road(results: Sequence[RoundResult], rows: int = BEAD_ROAD_ROWS) -> List[List[RoadBead]]:
    """
    Lay results out as a bead road: columns of ``rows`` beads, filled top
    to bottom and left to right.
    """
    if rows < 1:
        raise ValueError("A bead road needs at least one row")
    beads = [RoadBead.from_result(r) for r in results]
    return [beads[i : i + rows] for i in range(0, len(beads), rows)]


def confidence_interval(values: Sequence[float], confidence: float = 0.95) -> ConfidenceInterval:
    """
    Calculate a Student-t confidence interval for the mean of some values.

    Args:
        values: The values to calculate the confidence interval for
        confidence: The confidence level (e.g., 0.95 for 95% confidence)

    Returns:
        A ConfidenceInterval object
    """
    if len(values) == 0:
        return ConfidenceInterval(0.0, 0.0, confidence)
    mean = float(np.mean(values))
    if len(values) < 2:
        return ConfidenceInterval(mean, mean, confidence)

    std_err = stats.sem(values)
    margin = std_err * stats.t.ppf((1 + confidence) / 2, len(values) - 1)
    if math.isnan(margin):
        margin = 0.0
    return ConfidenceInterval(float(mean - margin), float(mean + margin), confidence)


def win_rate_interval(
    results: Sequence[RoundResult], winner: Winner, confidence: float = 0.95
) -> ConfidenceInterval:
    """Confidence interval for how often ``winner`` takes a round."""
    outcomes = [1.0 if r.winner == winner else 0.0 for r in results]
    return confidence_interval(outcomes, confidence)


def shoe_fairness_test(shoe: Shoe) -> ShoeFairness:
    """
    Compare the undealt baccarat-value distribution of a shoe with the
    composition of full decks.

    A low p-value means the remaining cards are unlikely to be what is left
    of a fairly dealt shoe, which is worth a closer look rather than proof
    of tampering.
    """
    analysis = shoe.analyze()
    observed = np.array(analysis.baccarat_values, dtype=float)
    remaining = int(observed.sum())
    if remaining == 0:
        return ShoeFairness(0.0, 1.0, 0, [0] * 10, [0.0] * 10)

    expected = _DECK_COMPOSITION / _DECK_COMPOSITION.sum() * remaining
    statistic, p_value = stats.chisquare(observed, f_exp=expected)
    return ShoeFairness(
        statistic=float(statistic),
        p_value=float(p_value),
        cards_remaining=remaining,
        observed=[int(v) for v in observed],
        expected=[float(v) for v in expected],
    )
