"""
Categorical Feature Selection Engine

This module implements the orchestrator that fits a categorical feature
selection model and applies it to datasets. Fitting builds contingency
statistics in ephemeral store-backed maps, hands them to a pluggable scorer
and keeps the resulting scores as the model. Transforming drops every
non-selected column from a dataset.

Key Features:
- Scorer strategy injected at construction (chi-square, mutual information, ...)
- Explicit FeatureSelectionContext carrying parameters, store and model
- Ephemeral statistics released on every exit path
- All-or-nothing fit: a failed fit leaves the previous model untouched
- Memory usage tracking during fit
"""

import logging
from contextlib import ExitStack
from datetime import datetime
from typing import Any, Dict

import psutil

from src.data.core.dataset import Dataset
from .filtering import filter_dataset
from .parameters import FeatureSelectionContext, ModelParameters
from .scorers import FeatureScorer
from .statistics import ContingencyCounts, FeatureStatisticsBuilder

logger = logging.getLogger(__name__)


class NotFittedError(ValueError):
    """Raised when transforming with a context that has not been fitted."""


class CategoricalSelectionEngine:
    """
    Fit/transform driver for categorical feature selection.

    The engine holds no model state: everything a call needs comes from the
    FeatureSelectionContext, and fit results are written back to it.
    """

    CLASS_COUNTS_MAP = 'tmp_class_counts'
    FEATURE_CLASS_COUNTS_MAP = 'tmp_feature_class_counts'
    FEATURE_COUNTS_MAP = 'tmp_feature_counts'

    def __init__(self, scorer: FeatureScorer, memory_limit_gb: float = 8.0):
        """
        Initialize engine.

        Args:
            scorer: Strategy converting contingency counts into feature scores
            memory_limit_gb: Process memory above which a warning is logged
        """
        self.scorer = scorer
        self.memory_limit_gb = memory_limit_gb
        self.memory_usage_ = {}

    def _monitor_memory(self, stage: str) -> Dict[str, Any]:
        """Monitor memory usage during processing."""
        process = psutil.Process()
        memory_gb = process.memory_info().rss / 1024 / 1024 / 1024

        self.memory_usage_[stage] = {
            'memory_gb': memory_gb,
            'timestamp': datetime.now(),
            'warning': memory_gb > self.memory_limit_gb
        }

        if memory_gb > self.memory_limit_gb:
            logger.warning(f"Memory usage ({memory_gb:.2f}GB) exceeds limit at {stage}")

        return self.memory_usage_[stage]

    def fit(self, dataset: Dataset, context: FeatureSelectionContext) -> ModelParameters:
        """
        Fit feature scores on a dataset.

        Rare features are removed from the dataset as a side effect when the
        training parameters enable pruning.

        Args:
            dataset: Training data
            context: Parameters and store; receives the new model parameters

        Returns:
            The fitted model parameters
        """
        training_parameters = context.training_parameters
        store = context.store

        logger.info("=" * 60)
        logger.info(f"FITTING CATEGORICAL FEATURE SELECTION ({self.scorer.name})")
        logger.info(f"Input: {len(dataset.columns)} columns, {len(dataset)} records")
        logger.info("=" * 60)

        start_time = datetime.now()
        self._monitor_memory("fit_start")

        n_observations = len(dataset)
        builder = FeatureStatisticsBuilder(training_parameters)

        with ExitStack() as stack:
            class_counts = stack.enter_context(store.ephemeral_map(self.CLASS_COUNTS_MAP))
            feature_class_counts = stack.enter_context(store.ephemeral_map(self.FEATURE_CLASS_COUNTS_MAP))
            feature_counts = stack.enter_context(store.ephemeral_map(self.FEATURE_COUNTS_MAP))

            builder.build(dataset, class_counts, feature_class_counts, feature_counts)

            counts = ContingencyCounts(
                class_counts=class_counts,
                feature_class_counts=feature_class_counts,
                feature_counts=feature_counts,
                n_observations=n_observations
            )
            # Scores are opaque here: some scorers rank by maximum, others by minimum
            feature_scores = dict(self.scorer.score(counts, training_parameters.max_features))

        model_parameters = ModelParameters(
            n_observations=n_observations,
            feature_scores=feature_scores
        )
        context.model_parameters = model_parameters

        elapsed_time = (datetime.now() - start_time).total_seconds()
        self._monitor_memory("fit_complete")

        logger.info(f"Selected {len(feature_scores)} features from {n_observations} observations "
                    f"in {elapsed_time:.2f} seconds")
        return model_parameters

    def transform(self, dataset: Dataset, context: FeatureSelectionContext) -> Dataset:
        """
        Drop every column that was not selected during fit.

        The dataset is modified in place and returned for chaining.
        """
        if not context.is_fitted:
            raise NotFittedError("CategoricalSelectionEngine not fitted - call fit first")

        filter_dataset(
            dataset,
            context.model_parameters.feature_scores,
            context.training_parameters.ignoring_numerical_features
        )
        return dataset

    def fit_transform(self, dataset: Dataset, context: FeatureSelectionContext) -> Dataset:
        """Fit on a dataset and filter it in one step."""
        self.fit(dataset, context)
        return self.transform(dataset, context)

    def get_selection_summary(self, context: FeatureSelectionContext) -> Dict[str, Any]:
        """Get selection summary for a fitted context."""
        if not context.is_fitted:
            raise NotFittedError("Categorical selection not fitted")

        model_parameters = context.model_parameters
        training_parameters = context.training_parameters
        sorted_features = sorted(model_parameters.feature_scores.items(), key=lambda x: x[1], reverse=True)

        return {
            'scorer': self.scorer.name,
            'n_observations': model_parameters.n_observations,
            'selected_features': model_parameters.selected_features,
            'feature_scores': dict(model_parameters.feature_scores),
            'ranked_features': sorted_features,
            'parameters': {
                'rare_feature_threshold': training_parameters.rare_feature_threshold,
                'max_features': training_parameters.max_features,
                'ignoring_numerical_features': training_parameters.ignoring_numerical_features
            },
            'memory_usage': self.memory_usage_.copy()
        }
