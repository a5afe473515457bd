"""
Feature scorers for categorical feature selection.

A scorer turns contingency statistics into a per-feature score and decides
which features survive: only features present in the returned mapping are
kept by the engine. Scorers never mutate the statistics they receive.

All scorers shipped here follow the "higher is better" convention and honor
max_features by keeping the top-ranked features only.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import numpy as np
from scipy.stats import chi2
from sklearn.metrics import mutual_info_score

from .statistics import ContingencyCounts

logger = logging.getLogger(__name__)


def select_top_features(
    scores: Dict[Any, float],
    max_features: Optional[int] = None
) -> Dict[Any, float]:
    """Keep the max_features highest scores; all of them if max_features is None."""
    if max_features is None or len(scores) <= max_features:
        return dict(scores)

    sorted_features = sorted(scores.items(), key=lambda x: x[1], reverse=True)
    return dict(sorted_features[:max_features])


class FeatureScorer(ABC):
    """Strategy interface turning contingency counts into feature scores."""

    name: str = 'base'

    @abstractmethod
    def score(
        self,
        counts: ContingencyCounts,
        max_features: Optional[int] = None
    ) -> Dict[Any, float]:
        """
        Score features.

        Args:
            counts: Class, feature and feature/class counts plus N
            max_features: Advisory cap on the number of returned features

        Returns:
            Mapping of selected feature ids to scores
        """
        pass


def _presence_table(counts: ContingencyCounts, feature: Any, classes: List[Any]) -> np.ndarray:
    """
    2 x C table of feature presence by class.

    Row 0 counts records of each class where the feature is present,
    row 1 where it is absent.
    """
    present = np.array(
        [counts.feature_class_counts.get((feature, c), 0) for c in classes],
        dtype=np.int64
    )
    class_totals = np.array([counts.class_counts[c] for c in classes], dtype=np.int64)
    return np.vstack([present, class_totals - present])


class ChiSquareScorer(FeatureScorer):
    """
    Pearson chi-square test of independence between feature presence and class.

    A feature is kept when its statistic reaches the critical value at the
    given significance level with C-1 degrees of freedom.
    """

    name = 'chisquare'

    def __init__(self, alpha: float = 0.05):
        if not 0 < alpha < 1:
            raise ValueError(f"alpha must be in (0, 1): {alpha}")
        self.alpha = alpha

    def _statistic(self, table: np.ndarray, n: float) -> float:
        expected = np.outer(table.sum(axis=1), table.sum(axis=0)) / n
        mask = expected > 0
        return float(np.sum((table[mask] - expected[mask]) ** 2 / expected[mask]))

    def score(
        self,
        counts: ContingencyCounts,
        max_features: Optional[int] = None
    ) -> Dict[Any, float]:
        classes = list(counts.class_counts)
        degrees_of_freedom = len(classes) - 1

        if degrees_of_freedom < 1:
            logger.warning(f"Chi-square scoring needs at least 2 classes, got {len(classes)}")
            return {}

        critical_value = chi2.ppf(1 - self.alpha, degrees_of_freedom)
        n = float(counts.n_observations)

        scores = {}
        for feature in counts.feature_counts:
            table = _presence_table(counts, feature, classes).astype(float)
            statistic = self._statistic(table, n)
            if statistic >= critical_value:
                scores[feature] = statistic

        logger.info(f"Chi-square (alpha={self.alpha}, critical={critical_value:.4f}): "
                    f"{len(scores)}/{len(counts.feature_counts)} features significant")
        return select_top_features(scores, max_features)


class MutualInformationScorer(FeatureScorer):
    """
    Mutual information between feature presence and class membership.

    For each class the 2x2 presence/membership table is scored and the
    feature keeps its maximum over classes (in nats).
    """

    name = 'mutual_information'

    def score(
        self,
        counts: ContingencyCounts,
        max_features: Optional[int] = None
    ) -> Dict[Any, float]:
        classes = list(counts.class_counts)

        scores = {}
        for feature in counts.feature_counts:
            table = _presence_table(counts, feature, classes)
            best = 0.0
            for j in range(len(classes)):
                # class j versus all other classes
                in_class = table[:, j]
                out_class = table.sum(axis=1) - in_class
                contingency = np.column_stack([in_class, out_class])
                best = max(best, mutual_info_score(None, None, contingency=contingency))
            scores[feature] = float(best)

        return select_top_features(scores, max_features)


class FrequencyScorer(FeatureScorer):
    """Document frequency: the number of records a feature is present in."""

    name = 'frequency'

    def __init__(self, min_count: Optional[int] = None):
        self.min_count = min_count

    def score(
        self,
        counts: ContingencyCounts,
        max_features: Optional[int] = None
    ) -> Dict[Any, float]:
        scores = {
            feature: float(count)
            for feature, count in counts.feature_counts.items()
            if self.min_count is None or count >= self.min_count
        }
        return select_top_features(scores, max_features)


SCORERS = {
    ChiSquareScorer.name: ChiSquareScorer,
    MutualInformationScorer.name: MutualInformationScorer,
    FrequencyScorer.name: FrequencyScorer
}


def create_scorer(name: str, **kwargs) -> FeatureScorer:
    """Create a scorer by name."""
    if name not in SCORERS:
        raise ValueError(f"Unknown scorer '{name}', expected one of {sorted(SCORERS)}")
    return SCORERS[name](**kwargs)
