"""Column filtering of datasets against a set of selected features."""

import logging
from typing import Any, Mapping, Set

from src.data.core.dataset import ColumnType, Dataset

logger = logging.getLogger(__name__)


def filter_dataset(
    dataset: Dataset,
    selected_features: Mapping[Any, Any],
    ignoring_numerical_features: bool = True
) -> Set[Any]:
    """
    Remove every column that is not a key of selected_features.

    Numerical columns are always kept when ignoring_numerical_features is set.
    The dataset is modified in place.

    Args:
        dataset: Dataset to filter
        selected_features: Feature membership mapping; values are unused
        ignoring_numerical_features: Whether numerical columns bypass the filter

    Returns:
        Set of removed feature ids
    """
    removed_columns = set()

    for feature, column_type in dataset.columns.items():
        if ignoring_numerical_features and column_type == ColumnType.NUMERICAL:
            continue

        if feature not in selected_features:
            removed_columns.add(feature)

    dataset.remove_columns(removed_columns)

    logger.info(f"Filtered dataset: removed {len(removed_columns)} columns, "
                f"{len(dataset.columns)} remaining")
    return removed_columns
