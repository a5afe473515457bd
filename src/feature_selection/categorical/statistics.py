"""
Contingency statistics for categorical feature selection.

This module builds the sufficient statistics every categorical scorer needs:
class counts, feature counts and joint feature/class counts. Counting runs in
two passes over the dataset. The first pass counts feature occurrences and
prunes rare features from the dataset; the second pass counts classes and
feature/class pairs over the surviving features only.

Key Features:
- Sparse presence semantics: only non-zero numeric values are counted
- Rare-feature pruning usable on its own as an aggressive pre-filter
- Works against any MutableMapping, including store-backed maps
- Memory bounded by distinct features, labels and pairs, not by records
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterator, Mapping, MutableMapping, Optional, Set, Tuple

from src.data.core.dataset import ColumnType, Dataset, Record, to_number
from src.data.core.storage import StoredMap
from .filtering import filter_dataset
from .parameters import TrainingParameters

logger = logging.getLogger(__name__)


class NonEmptyCountsError(RuntimeError):
    """Raised when feature counting is handed a map that already holds counts."""


@dataclass(frozen=True)
class ContingencyCounts:
    """Read-only bundle of statistics handed to feature scorers."""
    class_counts: Mapping[Any, int]
    feature_class_counts: Mapping[Tuple[Any, Any], int]
    feature_counts: Mapping[Any, int]
    n_observations: int


def _increment(counts: MutableMapping, key: Any) -> None:
    if isinstance(counts, StoredMap):
        counts.increment(key)
    else:
        counts[key] = counts.get(key, 0) + 1


def _present_features(
    record: Record,
    dataset: Dataset,
    ignoring_numerical_features: bool
) -> Iterator[Any]:
    """Yield the features of a record that count as present."""
    for feature, value in record.features.items():
        if ignoring_numerical_features and dataset.column_type(feature) == ColumnType.NUMERICAL:
            continue

        number = to_number(value)
        if number is None or number == 0.0:
            continue

        yield feature


def count_features(
    dataset: Dataset,
    feature_counts: MutableMapping,
    ignoring_numerical_features: bool = True
) -> MutableMapping:
    """
    Count in how many records each feature is present.

    Args:
        dataset: Dataset to count over
        feature_counts: Empty map to fill
        ignoring_numerical_features: Whether numerical columns are skipped

    Returns:
        The filled feature_counts map

    Raises:
        NonEmptyCountsError: If feature_counts is not empty
    """
    if len(feature_counts) > 0:
        raise NonEmptyCountsError("The feature_counts map should be empty.")

    for _, record in dataset.items():
        for feature in _present_features(record, dataset, ignoring_numerical_features):
            _increment(feature_counts, feature)

    logger.debug(f"Counted {len(feature_counts)} distinct present features")
    return feature_counts


def prune_rare_features(
    feature_counts: MutableMapping,
    rare_feature_threshold: Optional[int]
) -> Set[Any]:
    """
    Drop features with count <= rare_feature_threshold from feature_counts.

    Nothing is dropped when the threshold is None or not positive.

    Returns:
        Set of dropped feature ids
    """
    if rare_feature_threshold is None or rare_feature_threshold <= 0:
        return set()

    rare_features = {
        feature for feature, count in feature_counts.items()
        if count <= rare_feature_threshold
    }
    for feature in rare_features:
        del feature_counts[feature]

    logger.info(f"Rare feature pruning (threshold={rare_feature_threshold}): "
                f"dropped {len(rare_features)}, kept {len(feature_counts)}")
    return rare_features


def remove_rare_features(
    dataset: Dataset,
    rare_feature_threshold: Optional[int],
    ignoring_numerical_features: bool = True,
    feature_counts: Optional[MutableMapping] = None
) -> MutableMapping:
    """
    Count features, prune the rare ones and strip them from the dataset.

    Can be called on its own to aggressively remove rare features (for
    example from sparse bag-of-words datasets) before any fit.

    Args:
        dataset: Dataset to prune in place
        rare_feature_threshold: Count at or below which a feature is rare
        ignoring_numerical_features: Whether numerical columns bypass pruning
        feature_counts: Empty map to fill; a new dict is allocated if omitted

    Returns:
        Feature counts of the surviving features
    """
    if feature_counts is None:
        feature_counts = {}

    count_features(dataset, feature_counts, ignoring_numerical_features)

    if rare_feature_threshold is not None and rare_feature_threshold > 0:
        prune_rare_features(feature_counts, rare_feature_threshold)
        filter_dataset(dataset, feature_counts, ignoring_numerical_features)

    return feature_counts


def merge_counts(target: MutableMapping, shard: Mapping) -> MutableMapping:
    """Add the counts of a shard-local map into target."""
    for key, count in shard.items():
        if isinstance(target, StoredMap):
            target.increment(key, count)
        else:
            target[key] = target.get(key, 0) + count
    return target


class FeatureStatisticsBuilder:
    """
    Two-pass builder of class, feature and feature/class counts.

    Pass 1 counts feature occurrences and prunes rare features from the
    dataset. Pass 2 counts classes and feature/class pairs over what survived,
    so for every feature the joint counts add up to its feature count.
    """

    def __init__(self, training_parameters: TrainingParameters):
        self.training_parameters = training_parameters

    def build(
        self,
        dataset: Dataset,
        class_counts: MutableMapping,
        feature_class_counts: MutableMapping,
        feature_counts: MutableMapping
    ) -> None:
        """
        Fill the three count maps from the dataset.

        The dataset loses its rare columns when pruning is enabled.

        Raises:
            NonEmptyCountsError: If feature_counts is not empty
        """
        ignoring_numerical_features = self.training_parameters.ignoring_numerical_features

        # Pass 1: feature counts and pruning
        remove_rare_features(
            dataset,
            self.training_parameters.rare_feature_threshold,
            ignoring_numerical_features,
            feature_counts
        )

        # Pass 2: class and feature/class counts
        for _, record in dataset.items():
            label = record.label
            _increment(class_counts, label)

            for feature in _present_features(record, dataset, ignoring_numerical_features):
                _increment(feature_class_counts, (feature, label))

        logger.info(f"Feature statistics: {len(class_counts)} classes, "
                    f"{len(feature_counts)} features, "
                    f"{len(feature_class_counts)} feature/class pairs")
