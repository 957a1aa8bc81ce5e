"""
Memory model for FSRS v4.5.

Pure formulas for stability, difficulty and retrievability. No I/O and
no randomness; every function depends only on the weight vector and the
DECAY/FACTOR constants.
"""

import math
from collections.abc import Sequence
from typing import TYPE_CHECKING

from cadence.domain.constants import D_MAX, D_MIN, DECAY, FACTOR, S_INIT_MIN, S_MIN
from cadence.domain.models import GRADES, Rating

if TYPE_CHECKING:
    from cadence.application.scheduling_card import SchedulingCard


class MemoryModel:
    """
    Computes memory state transitions for a weight vector `w`.

    Stateless apart from the weights, which are never mutated.
    """

    def __init__(self, w: Sequence[float]):
        self.w = tuple(w)

    # ---------- Entry points ----------

    def init_ds(self, s: "SchedulingCard") -> None:
        """Populate every candidate of a card that has never been reviewed."""
        for grade in GRADES:
            s.set_memory_state(
                grade,
                stability=self.init_stability(grade),
                difficulty=self.init_difficulty(grade),
            )

    def next_ds(
        self, s: "SchedulingCard", last_d: float, last_s: float, retrievability: float
    ) -> None:
        """
        Update every candidate from the card's previous difficulty and stability.

        Args:
            s: Scheduling card to populate.
            last_d: Difficulty before the review.
            last_s: Stability before the review.
            retrievability: Recall probability at the moment of review.
        """
        last_d = self.constrain_difficulty(last_d)
        last_s = max(last_s, S_MIN)
        for grade in GRADES:
            if grade == Rating.AGAIN:
                stability = self.next_forget_stability(last_d, last_s, retrievability)
            else:
                stability = self.next_recall_stability(last_d, last_s, retrievability, grade)
            s.set_memory_state(
                grade,
                stability=stability,
                difficulty=self.next_difficulty(last_d, grade),
            )

    # ---------- Initial state ----------

    def init_stability(self, g: Rating) -> float:
        """
        S_0(G) = max(w[G-1], 0.1)
        """
        return max(self.w[g - 1], S_INIT_MIN)

    def init_difficulty(self, g: Rating) -> float:
        """
        D_0(G) = w4 - (G - 3) * w5, clamped to [1, 10].

        Rating Good on a new card yields exactly w4.
        """
        return self.constrain_difficulty(self.w[4] - (g - Rating.GOOD) * self.w[5])

    # ---------- Difficulty ----------

    def next_difficulty(self, d: float, g: Rating) -> float:
        """
        next_d = D - w6 * (G - 3)
        D' = w7 * D_0(3) + (1 - w7) * next_d
        """
        next_d = d - self.w[6] * (g - Rating.GOOD)
        return self.constrain_difficulty(
            self.mean_reversion(self.init_difficulty(Rating.GOOD), next_d)
        )

    def constrain_difficulty(self, difficulty: float) -> float:
        return min(max(round(difficulty, 2), D_MIN), D_MAX)

    def mean_reversion(self, init: float, current: float) -> float:
        """w7 * init + (1 - w7) * current"""
        return round(self.w[7] * init + (1 - self.w[7]) * current, 2)

    # ---------- Stability ----------

    def next_recall_stability(self, d: float, s: float, r: float, g: Rating) -> float:
        """
        Stability after a successful recall (Hard, Good or Easy).

        S'_r = S * (e^w8 * (11 - D) * S^-w9 * (e^(w10 * (1 - R)) - 1) * h(G) + 1)

        where h(Hard) = w15 is a penalty and h(Easy) = w16 a bonus.
        """
        hard_penalty = self.w[15] if g == Rating.HARD else 1
        easy_bonus = self.w[16] if g == Rating.EASY else 1
        growth = (
            math.exp(self.w[8])
            * (11 - d)
            * math.pow(s, -self.w[9])
            * (math.exp((1 - r) * self.w[10]) - 1)
            * hard_penalty
            * easy_bonus
        )
        return max(round(s * (growth + 1), 2), S_MIN)

    def next_forget_stability(self, d: float, s: float, r: float) -> float:
        """
        Stability after a lapse (Again).

        S'_f = w11 * D^-w12 * ((S + 1)^w13 - 1) * e^(w14 * (1 - R))
        """
        stability = (
            self.w[11]
            * math.pow(d, -self.w[12])
            * (math.pow(s + 1, self.w[13]) - 1)
            * math.exp((1 - r) * self.w[14])
        )
        return max(round(stability, 2), S_MIN)

    # ---------- Retrievability ----------

    def forgetting_curve(self, elapsed_days: float, stability: float) -> float:
        """
        R(t, S) = (1 + FACTOR * t / S)^DECAY

        Equals 1 at t = 0 and 0.9 at t = S.
        """
        stability = max(stability, S_MIN)
        return round(math.pow(1 + FACTOR * elapsed_days / stability, DECAY), 8)
