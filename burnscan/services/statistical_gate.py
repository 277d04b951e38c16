import math
import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from burnscan.models import DecisionThresholds

logger = logging.getLogger(__name__)

# Probabilities at or below this are treated as zero (avoids log(0))
PROB_EPSILON = 1e-8


@dataclass(frozen=True)
class Top2Stats:
    top_index: int
    top: float
    second: float

    @property
    def margin(self) -> float:
        return self.top - self.second


@dataclass(frozen=True)
class GateResult:
    entropy: float
    top2: Top2Stats
    margin: float
    uniform_gap: float
    jsd: float
    entropy_ok: bool
    accept_direct: bool
    accept_by_rule: bool
    tta_consistent: bool


class StatisticalGate:
    """
    Confidence statistics over the canonical class distribution.

    Responsibilities:
    1. Stable softmax from raw logits.
    2. Predictive entropy (natural log) as a measure of model uncertainty.
    3. Top-1 / Top-2 margin and distance from the uniform distribution.
    4. Jensen-Shannon divergence between the original and mirrored views,
       a cheap self-consistency check.
    """

    def softmax(self, logits: Sequence[float]) -> np.ndarray:
        """
        Numerically stable softmax. The returned array is read-only.
        """
        values = np.asarray(logits, dtype=np.float64)
        exps = np.exp(values - values.max())
        probs = exps / exps.sum()
        probs.setflags(write=False)
        return probs

    def calculate_entropy(self, probabilities: Sequence[float]) -> float:
        """
        Shannon entropy in nats.
        H = -sum(pi * ln(pi))
        """
        entropy = 0.0
        for p in probabilities:
            if p > PROB_EPSILON:
                entropy -= p * math.log(p)
        return entropy

    def top2(self, probabilities: Sequence[float]) -> Top2Stats:
        # Forward scan with strict '>', so the first index holding the max wins
        top_index = 0
        top = float(probabilities[0])
        second = 0.0
        for i in range(1, len(probabilities)):
            p = float(probabilities[i])
            if p > top:
                second = top
                top = p
                top_index = i
            elif p > second:
                second = p
        return Top2Stats(top_index=top_index, top=top, second=second)

    def kl_divergence(self, a: Sequence[float], b: Sequence[float]) -> float:
        total = 0.0
        for a_i, b_i in zip(a, b):
            if a_i > PROB_EPSILON and b_i > PROB_EPSILON:
                total += a_i * math.log(a_i / b_i)
        return total

    def js_divergence(self, p: Sequence[float], q: Sequence[float]) -> float:
        """Jensen-Shannon divergence, base e. Bounded by ln 2."""
        p = np.asarray(p, dtype=np.float64)
        q = np.asarray(q, dtype=np.float64)
        m = 0.5 * (p + q)
        return 0.5 * self.kl_divergence(p, m) + 0.5 * self.kl_divergence(q, m)

    def evaluate(self, canonical: Sequence[float], orig: Sequence[float], flip: Sequence[float],
                 thresholds: DecisionThresholds) -> GateResult:
        entropy = float(self.calculate_entropy(canonical))
        top2 = self.top2(canonical)
        margin = top2.margin
        uniform_gap = top2.top - 1.0 / len(canonical)
        jsd = float(self.js_divergence(orig, flip))

        result = GateResult(
            entropy=entropy,
            top2=top2,
            margin=margin,
            uniform_gap=uniform_gap,
            jsd=jsd,
            entropy_ok=entropy <= thresholds.max_entropy,
            accept_direct=top2.top >= thresholds.accept_hard,
            accept_by_rule=(
                top2.top >= thresholds.min_confidence
                and margin >= thresholds.min_margin
                and uniform_gap >= thresholds.uniform_gap
            ),
            tta_consistent=jsd <= thresholds.max_jsd,
        )
        logger.debug(f"Statistical gate: {result}")
        return result


statistical_gate = StatisticalGate()
